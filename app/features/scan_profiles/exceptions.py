"""
Scan Profile Errors

Every error raised by the profile / budget core. None of them are retried
internally; callers decide whether to abort the scan or fall back to a
default profile.
"""


class ScanProfileError(Exception):
    """Base class for scan profile errors."""

    error_code = "scan_profile_error"


class TierRequiredError(ScanProfileError):
    """A profile override was requested that the user's tier does not allow."""

    error_code = "tier_required"

    def __init__(self, profile, user_tier):
        self.profile = profile
        self.user_tier = user_tier
        super().__init__(
            f"{getattr(profile, 'value', profile)} profile requires Enterprise tier "
            f"(current tier: {getattr(user_tier, 'value', user_tier)})"
        )


class ValidationError(ScanProfileError, ValueError):
    """A crawl progress event carried negative or decreasing counts."""

    error_code = "invalid_progress_event"


class IncompleteStateError(ScanProfileError):
    """A coverage summary was requested for a crawl that has not stopped."""

    error_code = "crawl_not_stopped"
