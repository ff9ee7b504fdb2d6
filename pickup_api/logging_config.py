import logging
import os
import opentelemetry.trace
from azure.monitor.opentelemetry import configure_azure_monitor

# Configure Azure Monitor (this automatically sets up connection to Application Insights)
# Only configure if running in Azure (determined by FUNCTIONS_WORKER_RUNTIME environment variable)
if os.environ.get("FUNCTIONS_WORKER_RUNTIME"):
    try:
        configure_azure_monitor()
        logging.info("Azure Monitor OpenTelemetry configured successfully")
    except Exception as e:
        logging.error(f"Error configuring Azure Monitor: {str(e)}")

# Get a tracer for the current module (for distributed tracing)
tracer = opentelemetry.trace.get_tracer("pickup_api")

logger = logging.getLogger("pickup_api")
logger.setLevel(logging.INFO)

if not logger.handlers:
    # Console handler for local development and Azure Functions console
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    logger.addHandler(console_handler)


def get_child_logger(name):
    """Get a child logger with the given name."""
    return logger.getChild(name)


def mask_email(email: str) -> str:
    """Mask the local part of an email address for log output."""
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    visible = local[:2] if len(local) > 2 else local[:1]
    return f"{visible}***@{domain}"
