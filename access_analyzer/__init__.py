"""CrowdStrike On-Prem Service Access pattern analyzer."""

__version__ = "1.0.0"
