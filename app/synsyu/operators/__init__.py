"""Update operators wrapping the external package managers."""

from synsyu.operators.apps import FlatpakOperator, FwupdOperator
from synsyu.operators.base import UpdateOperator
from synsyu.operators.helper import HelperOperator
from synsyu.operators.pacman import PacmanOperator

__all__ = [
    "FlatpakOperator",
    "FwupdOperator",
    "HelperOperator",
    "PacmanOperator",
    "UpdateOperator",
]
