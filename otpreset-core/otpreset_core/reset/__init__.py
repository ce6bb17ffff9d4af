"""
Password Reset
==============
Reset flow orchestration and its collaborators.
"""

from .interfaces import Directory, Mailer, PasswordMutator
from .flow import PasswordResetFlow, StartResult, CompleteResult
from .admin_client import UserAdminClient, UserAdminConfig
from .mailer import SMTPMailer, SMTPConfig, ConsoleMailer

__all__ = [
    # Interfaces
    "Directory",
    "Mailer",
    "PasswordMutator",
    # Flow
    "PasswordResetFlow",
    "StartResult",
    "CompleteResult",
    # Collaborators
    "UserAdminClient",
    "UserAdminConfig",
    "SMTPMailer",
    "SMTPConfig",
    "ConsoleMailer",
]
