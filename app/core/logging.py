import logging
import sys
from app.core.config import settings


class RequestContextFilter(logging.Filter):
    """
    Logging filter that adds tenant_id and user_id to all log records.

    Values come from the admitted request's context, so every line logged
    while serving a request can be traced back to its institute and caller.
    """

    def filter(self, record):
        from app.core.tenant_context import get_request_context

        context = get_request_context()
        if context is None:
            record.tenant_id = "NO_TENANT"
            record.user_id = "ANONYMOUS"
        else:
            for name, value in context.log_fields().items():
                setattr(record, name, value)
        return True


def setup_logging():
    """
    Setup logging configuration with request context support.

    Configures:
    - Log level from settings
    - Log format with tenant_id and user_id fields
    - Request context filter for all handlers
    - Suppresses noisy third-party loggers
    """
    context_filter = RequestContextFilter()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper()),
        format="%(asctime)s - %(name)s - [tenant:%(tenant_id)s user:%(user_id)s] - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    for handler in logging.root.handlers:
        handler.addFilter(context_filter)

    logging.getLogger("motor").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger(__name__)
