import pytest
from loguru import logger

from texmd.config import PipelineConfig


# The lesson the document screen was built to show.
QUADRATIC_LESSON = r"""
\section*{Introduction}

\vspace{1em}

Welcome to this lesson on solving quadratic equations by factoring!

\vspace{1em}

\section*{Key Concepts Covered}

\vspace{1em}

\begin{itemize}
  \item \textbf{Understanding Quadratic Equations}: What are they and why are they important?
  \item \textbf{Factoring Basics}: Breaking down quadratic equations into their factors.
  \item \textbf{Zero-Product Property}: How setting each factor to zero helps find the solution.
\end{itemize}

\vspace{1em}

\section*{Step-by-Step Guide}

\vspace{1em}

\begin{enumerate}
  \item \textbf{Factor the quadratic expression:}
    Example:
    \[
    x^2 + 5x + 6 = 0
    \]
    Factors to:
    \[
    (x + 2)(x + 3) = 0
    \]

  \item \textbf{Apply the Zero-Product Property:}
    Set each factor equal to zero:
    \[
    x + 2 = 0 \quad \text{or} \quad x + 3 = 0
    \]
\end{enumerate}
"""


@pytest.fixture
def lesson():
    return QUADRATIC_LESSON


@pytest.fixture
def default_config():
    return PipelineConfig()


@pytest.fixture
def log_messages():
    """Collects loguru messages emitted while the test runs."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record), level="DEBUG")
    yield messages
    logger.remove(handler_id)
