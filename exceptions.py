class MazeError(Exception):
    """Base exception for the maze tool."""
    pass


class MalformedEdgeError(MazeError, ValueError):
    """Raised when a wall lookup names two points that are not axis-adjacent."""
    pass


class SchedulerBusyError(MazeError, RuntimeError):
    """Raised when a second timer is armed while one is still pending."""
    pass


class ConfigurationError(MazeError):
    """Raised for configuration-related errors."""
    pass
