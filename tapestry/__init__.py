"""
Rendering pipeline for the Data Tapestry.

Deterministically turns the archive of daily slices into public artifacts:
  - tapestry.svg (one animated wave thread per day, newest on top)
  - a top-repositories markdown table spliced into the README

Output is a pure function of the files under data/daily/.
"""

__version__ = "0.1.0"
