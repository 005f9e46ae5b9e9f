# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

import os
import sys
import sphinx_rtd_dark_mode

# Project root on sys.path so autodoc can import sim/ and ui/
sys.path.insert(0, os.path.abspath("../.."))

project = 'Intersection Traffic Sim'
copyright = '2026, Intersection Sim Team'
author = 'Intersection Sim Team'
release = '0.1'

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",    # docs from docstrings
    "sphinx.ext.napoleon",   # NumPy / Google docstrings
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode",
]

autodoc_member_order = "bysource"
templates_path = ['_templates']
exclude_patterns = []

# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
html_static_path = []

# pygame needs a display driver; the simulation core does not
autodoc_mock_imports = ["pygame"]
