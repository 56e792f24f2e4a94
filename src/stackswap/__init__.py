"""Hotswap CloudFormation resource changes directly through AWS APIs."""

__version__ = "0.1.0"
