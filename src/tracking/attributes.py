"""
Attribute estimators for tracked identities.

The tracker asks an estimator for demographics exactly once, when an
identity is created. The default estimator draws placeholder values; a
real model or a deterministic stub can be swapped in without touching the
tracker.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Optional

from models.detection import Detection
from models.identity import GENDER_FEMALE, GENDER_MALE, Demographics

MIN_AGE = 18
AGE_SPAN = 50


class AttributeEstimator(ABC):
    """Interface for assigning demographics to a newly created identity."""

    @abstractmethod
    def estimate(self, detection: Detection) -> Demographics:
        """Return demographics for the detection that created an identity."""
        pass


class RandomAttributeEstimator(AttributeEstimator):
    """
    Placeholder estimator with independent uniform draws.

    Gender is male or female with probability 0.5 each; age is uniform over
    18..67.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def estimate(self, detection: Detection) -> Demographics:
        gender = GENDER_MALE if self._rng.random() > 0.5 else GENDER_FEMALE
        age = int(MIN_AGE + self._rng.random() * AGE_SPAN)
        return Demographics(gender=gender, age=age)
