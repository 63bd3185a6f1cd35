"""Enums for model fields."""

from enum import Enum


class KycStatus(str, Enum):
    """Review state of a KYC submission."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycAction(str, Enum):
    """Actions recorded in the KYC history."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
