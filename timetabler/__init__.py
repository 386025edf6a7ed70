"""
timetabler - weekly timetable editor with PDF and spreadsheet export.
"""

__version__ = "0.1.0"
