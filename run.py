#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Gemini Chat Exporter - export a Gemini conversation with its full history

Scrolls the chat to the top until every older turn has loaded, converts
each turn to Markdown, and writes the conversation as PDF, Markdown or CSV.
"""

import sys

from gemini_export.cli import main

if __name__ == "__main__":
    sys.exit(main())
