"""
Adaptive Location Sampling (ALS) Core Package.

Decides how often and how precisely to sample position given battery,
power-save, motion and destination proximity; classifies fixes by probable
source; manages one-shot and continuous request lifecycles; fans results
out to subscribers.

Package structure:
- proto: Fix, SamplingConfig and related records
- sampling: Device state, sampling policy, source classifier, quality filter
- control: Tracking and acquisition controllers, errors, status
- io: Collaborator interfaces, listener registry, simulated source
- metrics: Diagnostics, counters, histograms
"""

__version__ = "0.1.0"
__author__ = "ALS Team"
