"""Shared fixtures for resumie backend tests."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from resumie.main import app
from resumie.routes import export as export_route
from resumie.routes import render as render_route


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting for all tests."""
    limiters = [app.state.limiter, render_route.limiter, export_route.limiter]
    for limiter in limiters:
        limiter.enabled = False
    yield
    for limiter in limiters:
        limiter.enabled = True


# ---------------------------------------------------------------------------
# Sample LaTeX resume shared by extractor, export and route tests
# ---------------------------------------------------------------------------

SAMPLE_LATEX = r"""
\documentclass[11pt]{article}
\usepackage[letterpaper,top=20mm,bottom=20mm,left=20mm,right=20mm]{geometry}
\usepackage{titlesec}
\begin{document}
\begin{center}
\textbf{\Huge Jane Doe} \\
\small 555-123-4567 $|$ \href{mailto:jane@example.com}{jane@example.com} $|$ \href{https://linkedin.com/in/janedoe}{linkedin.com/in/janedoe}
\end{center}

\section{Experience}
\resumeSubheading{Acme Corp}{2020 -- Present}{Senior Engineer}{Remote}
\begin{itemize}
  \item Built the \textbf{billing} pipeline
  \item Cut p99 latency by half
\end{itemize}

\section*{Skills}
Python, Go, SQL

\end{document}
""".strip()


@pytest.fixture()
def sample_latex():
    return SAMPLE_LATEX
