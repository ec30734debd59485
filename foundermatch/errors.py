"""
Errors surfaced by the matching service.

An empty candidate pool is not an error: ranking simply returns [].
"""


class MatchError(Exception):
    """Base class for matching failures."""
    pass


class InvalidInput(MatchError):
    """Raised for a bad `k` or a malformed filter, before any scoring work."""
    pass


class ProfileNotFound(MatchError):
    """Raised when a profile id does not resolve to a profile."""

    role = "Profile"

    def __init__(self, profile_id):
        self.profile_id = profile_id
        super().__init__(f"{self.role} not found: {profile_id}")


class SubjectNotFound(ProfileNotFound):
    """Raised when the subject id does not resolve to a profile."""

    role = "Subject"

    @property
    def subject_id(self):
        return self.profile_id


class CandidateNotFound(ProfileNotFound):
    """Raised when an explained candidate id does not resolve to a profile."""

    role = "Candidate"


class CandidateStoreUnavailable(MatchError):
    """Raised when the profile store cannot be read."""
    pass
