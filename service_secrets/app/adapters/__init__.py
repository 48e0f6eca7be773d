"""
Adapters package for the secrets proxy.

Contains the Secrets Manager client the forwarder calls through. The
adapter encapsulates:

- boto3 client construction (region, endpoint, timeouts, single attempt)
- Running blocking SDK calls off the event loop
- Mapping SDK failures onto shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .backend import SecretsBackend
from .secrets_manager_client import SecretsManagerClient

__all__ = [
    "SecretsBackend",
    "SecretsManagerClient",
]
