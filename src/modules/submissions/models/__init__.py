from .submission import Submission
from .signature import Signature

__all__ = ['Submission', 'Signature']
