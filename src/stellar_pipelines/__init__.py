"""
Stellar Pipelines

Composable client-side transaction pipelines for Stellar and Soroban:
building, simulating, authorizing, assembling, signing and submitting
transactions as a chain of typed stages.
"""

# Errors and configuration
from .runtime.errors import *
from .runtime.address import *
from .runtime.config import *

# Transaction helpers
from .tx import *

# Signers and signing requirements
from .signers import *

# RPC
from .rpc import *

# Stages
from .processes import *

# Pipelines and plugins
from .pipelines import *
from .plugins import *

__version__ = "0.1.0"
