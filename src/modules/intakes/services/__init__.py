from .intake_service import INTAKE_SESSION_TTL_DAYS, IntakeService, extract_prefill, generate_token

__all__ = ['INTAKE_SESSION_TTL_DAYS', 'IntakeService', 'extract_prefill', 'generate_token']
