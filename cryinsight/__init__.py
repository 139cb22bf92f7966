"""
CryInsight

Heuristic infant cry classification: decodes a recording, extracts pitch,
rhythm, intensity and spectral-shape features, scores them against
reference cry profiles and explains the most likely need.
"""

__version__ = "1.0.0"
__author__ = "CryInsight Team"
