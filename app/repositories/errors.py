class RepoError(Exception):
    """Base class for repository-level errors."""

    pass


# ------------------------- EXERCISE -------------------------


class ExerciseRepoError(RepoError):
    """Generic exercise repository error"""

    pass


class ExerciseNotFoundError(ExerciseRepoError):
    """Raised when an exercise cannot be found for the given id."""

    pass


# ------------------------- CACHE -------------------------


class CacheRepoError(RepoError):
    pass


# ------------------------- ORGANIZATION -------------------------


class OrganizationRepoError(RepoError):
    pass
