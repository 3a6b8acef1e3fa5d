"""Core domain package for the Teams release notifier.

Core contains configuration resolution, hook classification and the domain
models without any Teams- or HTTP-specific code.
"""
