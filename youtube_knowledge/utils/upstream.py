import logging
import functools

import requests

from ..errors import KnowledgeBaseError, UpstreamServiceError, UpstreamTimeout

logger = logging.getLogger(__name__)


def upstream_call(service: str, error_cls: type = UpstreamServiceError):
    """Decorator translating transport failures of an external call into the
    knowledge base error taxonomy.

    The wrapped call is attempted exactly once. Timeouts become UpstreamTimeout,
    any other requests failure or undecodable body becomes ``error_cls``.
    KnowledgeBaseErrors raised by the wrapped function pass through untouched.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KnowledgeBaseError:
                raise
            except requests.Timeout as e:
                logger.warning(f"{service} timed out: {e}")
                raise UpstreamTimeout(f"{service} timed out") from e
            except (requests.RequestException, ValueError, KeyError) as e:
                error_name = type(e).__name__
                status_code = getattr(getattr(e, "response", None), "status_code", None)
                if status_code is not None:
                    logger.error(f"{service} failed with HTTP {status_code}: {e}")
                else:
                    logger.error(f"{service} failed ({error_name}): {e}")
                raise error_cls(f"{service} failed: {e}") from e

        return wrapper

    return decorator
