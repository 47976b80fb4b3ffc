from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from resumecraft.config import Settings
from resumecraft.db.models import Template
from resumecraft.db.repositories import Repository

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "Classic"

DEFAULT_TEMPLATE_LATEX = r"""
\documentclass[11pt]{article}
\usepackage[margin=0.75in]{geometry}
\usepackage{enumitem}
\usepackage[hidelinks]{hyperref}
\setlist[itemize]{leftmargin=*, noitemsep}
\pagestyle{empty}

\newcommand{\resumesection}[1]{\vspace{6pt}{\large\bfseries #1}\\[-6pt]\rule{\linewidth}{0.4pt}}

\begin{document}

\begin{center}
  {\LARGE\bfseries Your Name} \\[2pt]
  City, State \textbullet{} (555) 555-5555 \textbullet{} \href{mailto:you@example.com}{you@example.com}
\end{center}

\resumesection{Summary}
One or two sentences describing your focus and strengths.

\resumesection{Experience}
\textbf{Job Title} \hfill Start -- End \\
\textit{Company} \hfill Location
\begin{itemize}
  \item Achievement with a measurable outcome.
\end{itemize}

\resumesection{Education}
\textbf{Degree}, School \hfill Year

\resumesection{Skills}
Skill one, skill two, skill three

\end{document}
""".strip()


def seed_default_template(session: Session) -> int:
    if session.scalar(select(Template.id).limit(1)) is not None:
        return 0

    Repository(session).create_template(
        {
            "name": DEFAULT_TEMPLATE_NAME,
            "description": "Single-column article layout with ruled section headings.",
            "image_url": "https://placehold.co/600x800/png?text=Classic",
            "image_hint": "resume classic",
            "latex_code": DEFAULT_TEMPLATE_LATEX,
        },
        is_default=True,
    )
    return 1


def seed_bootstrap_admin(session: Session, settings: Settings) -> int:
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return 0

    repo = Repository(session)
    existing = repo.get_user_by_email(settings.bootstrap_admin_email)
    if existing:
        if existing.role != "admin":
            repo.update_user(existing.id, {"role": "admin"})
            logger.info("Promoted bootstrap admin %s", existing.email)
        return 0

    repo.create_user(
        name=settings.bootstrap_admin_name,
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        role="admin",
    )
    logger.info("Created bootstrap admin %s", settings.bootstrap_admin_email)
    return 1
