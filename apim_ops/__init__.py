"""apim-ops - post-deployment provisioning of APIM named values."""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .provisioner import Provisioner

__all__ = ["Provisioner"]
