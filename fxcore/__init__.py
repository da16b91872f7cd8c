"""fxcore: lifecycle coordinator for provision, deploy and publish stages."""

__version__ = "1.0.0"
