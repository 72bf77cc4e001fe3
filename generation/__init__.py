from .jobs import JobLog
from .service import GenerationResult, RegenerationRequiresConfirmation, generate_phase_content
from .webhook import WebhookClient, WebhookConfig, WebhookError, load_webhook_config

__all__ = [
    "GenerationResult",
    "JobLog",
    "RegenerationRequiresConfirmation",
    "WebhookClient",
    "WebhookConfig",
    "WebhookError",
    "generate_phase_content",
    "load_webhook_config",
]
