"""Custom exceptions for the breed_sim package."""


class BreedSimError(Exception):
    """Base exception for breed_sim package."""
    pass


class ValidationError(BreedSimError, ValueError):
    """Malformed genetic data (genes, alleles, phenotypes, genomes)."""
    pass


class NotFoundError(BreedSimError):
    """Referenced creature or request does not exist."""
    pass


class InvalidStateError(BreedSimError):
    """Operation not allowed in the session's current state."""
    pass


class ConfigurationError(BreedSimError):
    """Configuration validation or loading error."""
    pass


class ConfigurationMissingError(ConfigurationError):
    """A difficulty or mini-game tuning table is absent."""
    pass


class DatabaseError(BreedSimError):
    """Database operation error."""
    pass
