"""Common literal values used across course_processor.

These constants keep filenames and reserved names centralized so the scanner,
emitters, and tests can import the same values without drifting. Intended for
internal use within the course_processor package.

Examples
--------
>>> from course_processor import _constants
>>> _constants.METADATA_FILENAME
'metadata.yaml'
>>> _constants.GLOSSARY_BUCKETS[-2:]
('digit', 'symb')
"""

import string

METADATA_FILENAME = "metadata.yaml"
DUMMY_MODULE = "dummy"
LEVELS = ("green", "yellow", "orange", "red")
MAX_STEPS_PER_MODULE = 99

THEME_INDEX_FILENAME = "themeindex.html"
THEME_MAP_FILENAME = "index.html"
OUTJECTIVES_FILENAME = "outjectives.html"
COURSE_INDEX_FILENAME = "courseindex.html"
COURSE_MAP_FILENAME = "coursemap.html"
FRONTPAGE_FILENAME = "frontpage.html"
REFERENCES_FILENAME = "references.html"
GLOSSARY_DIRNAME = "glossary"
GLOSSARY_INDEX_FILENAME = "index.html"
MEDIA_DIRNAME = "media"
FRAMEWORK_DIRNAME = "framework"

GLOSSARY_BUCKETS = (*string.ascii_lowercase, "digit", "symb")
OUTJECTIVES_STEP_TITLE = "Outcomes and Objectives"
AUTO_ANCHOR_PREFIX = "AUTO-"
COURSE_BASE_MARKER = "{COURSE_BASE}/"
