"""EvalMaster: human evaluation of imported records (scoring and A/B comparison)."""

__version__ = "1.0.0"
