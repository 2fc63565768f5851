"""
Config Harness - Model Configuration Test Harness

This package validates a model-serving configuration pipeline against
fixture repositories of model directories and golden outputs:
- runtime: Normalizer, validator, bundle initializers, pipeline, matcher, walker
- observability: Logging and Prometheus metrics
- config: Environment-driven harness settings
"""

__version__ = "1.0.0"
