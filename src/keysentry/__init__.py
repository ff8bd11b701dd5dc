"""Check whether a credential has leaked, without ever sending it anywhere.

keysentry helps you:
- Identify which provider issued an API key or token
- Spot placeholders and low-entropy values before they ship
- Look a secret up in breach data using k-anonymity (only a 5-char hash prefix leaves the machine)
- Merge every signal into a single risk level
"""

__version__ = "0.1.0"

from keysentry.core.secure_buffer import ContractViolation, SecretBuffer
from keysentry.engine import CheckEngine, CheckReport

__all__ = ["CheckEngine", "CheckReport", "ContractViolation", "SecretBuffer", "__version__"]
