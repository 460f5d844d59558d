"""Format Modifications - format only the lines that differ from version control"""

__version__ = "1.0.0"
