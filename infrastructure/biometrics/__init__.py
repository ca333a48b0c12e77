"""Face recognition registry integration"""
from .client import (
    BiometricGatewayClient,
    BiometricUnavailable,
    MatchResult,
    get_biometric_client,
)
from .registration import RegistrationWorker

__all__ = [
    "BiometricGatewayClient",
    "BiometricUnavailable",
    "MatchResult",
    "get_biometric_client",
    "RegistrationWorker",
]
