"""
TSX Render Package

Renders a TSX component to MP4 by synthesizing a throwaway Remotion project
around it:
- Composition config extraction from source text
- Temporary project synthesis
- Render job orchestration (bundle, select composition, render)
- Periodic stale file sweep
"""

__version__ = "0.1.0"
