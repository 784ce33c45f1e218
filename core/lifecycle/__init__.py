"""
Lifecycle Module - Application and posting state machines.

- transitions.py: Transition tables and validators
- application.py: ApplicationLifecycle (submit, transition, accept, rate, ...)
- posting.py: PostingLifecycle and the accept-cascade
- locks.py: Per-posting lock registry serialising accepts
- events.py: Lifecycle event construction and post-commit emission
"""

from core.lifecycle.application import ApplicationLifecycle
from core.lifecycle.posting import AcceptResult, PostingLifecycle, PostingOutcome
from core.lifecycle.locks import PostingLockRegistry

__all__ = ['ApplicationLifecycle', 'PostingLifecycle', 'AcceptResult', 'PostingOutcome', 'PostingLockRegistry']
