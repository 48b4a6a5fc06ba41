"""Error taxonomy shared by the data layer, the core logic and the UI."""


class StudyTrackError(Exception):
    """Base class for all StudyTrack errors."""


class ValidationError(StudyTrackError):
    """User input is invalid. The operation did nothing; prompt the user."""


class NotFoundError(StudyTrackError):
    """A row or list the view needs is missing. Render an empty state."""


class TransportError(StudyTrackError):
    """Supabase request failed. Only the data layer raises this."""


class AuthenticationError(TransportError):
    """Sign-in or sign-up was rejected by Supabase auth."""


class ConfigurationError(StudyTrackError):
    """SUPABASE_URL / SUPABASE_KEY are not set."""
