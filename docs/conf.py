# Configuration file for the Sphinx documentation builder.
#
# This file only contains a selection of the most common options. For a full
# list see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Path setup --------------------------------------------------------------

import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(__file__, "..", ".."))
sys.path.insert(0, ROOT_DIR)


# Load rulegrid so autodoc can query docstrings. This does not need a GPU.
import rulegrid  # noqa: E402

# -- Project information -----------------------------------------------------

project = "rulegrid"
copyright = "2025, The rulegrid contributors"
author = "The rulegrid contributors"
release = rulegrid.__version__


# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx_rtd_theme",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable", None),
    "wgpu": ("https://wgpu-py.readthedocs.io/en/stable", None),
}

templates_path = ["_templates"]

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

master_doc = "index"

autodoc_member_order = "bysource"


# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
