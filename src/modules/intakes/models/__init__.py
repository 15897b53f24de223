from .intake_session import IntakeSession, IntakeStatus

__all__ = ['IntakeSession', 'IntakeStatus']
