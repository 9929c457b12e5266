"""Digital filters and a SpyServer IQ client for software-defined radio receivers."""

__version__ = "0.1.0"