from functools import wraps

from .patch import patch_phoenix


def mock_phoenix(func):
    """
    Decorator to run a function against the in-process Phoenix mock server.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        with patch_phoenix():
            return func(*args, **kwargs)

    return wrapper
