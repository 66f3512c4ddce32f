"""Entry point for PyInstaller builds and plain `python run_backend.py` runs."""
import sys
import os

# Add this directory to path so the package imports without installation
if getattr(sys, 'frozen', False):
    # Running as PyInstaller bundle
    base_path = sys._MEIPASS
else:
    base_path = os.path.dirname(os.path.abspath(__file__))

sys.path.insert(0, base_path)

from steadyport.run import main

if __name__ == "__main__":
    sys.exit(main())
