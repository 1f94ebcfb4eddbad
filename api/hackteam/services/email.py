"""
Serviço de envio de emails de notificação de equipe.

Notificações são best-effort: nenhuma falha aqui altera o resultado de um
convite ou de uma aceitação.
"""

import logging
from html import escape
from typing import List

import resend
from fastapi.concurrency import run_in_threadpool

from hackteam.core.config import settings

logger = logging.getLogger("hackteam.email")


def build_send_params(recipients: List[str], subject: str, html_body: str) -> "resend.Emails.SendParams":
    """Monta o payload do Resend a partir das settings."""
    return {
        "from": f"{settings.email_from_name} <{settings.email_from}>",
        "to": recipients,
        "subject": subject,
        "html": html_body,
    }


async def send_email(
    to: List[str] | str,
    subject: str,
    html_body: str,
) -> None:
    """
    Envia um email.

    Args:
        to: Email(s) do(s) destinatário(s)
        subject: Assunto do email
        html_body: Corpo HTML do email
    """
    if not settings.resend_api_key:
        logger.info("Envio de email não configurado. Email NÃO foi enviado (assunto: %s)", subject)
        return

    recipients = [to] if isinstance(to, str) else list(to)

    resend.api_key = settings.resend_api_key
    # O SDK do Resend é síncrono
    response = await run_in_threadpool(resend.Emails.send, build_send_params(recipients, subject, html_body))
    logger.info("Email enviado para: %s (id=%s)", ", ".join(recipients), response.get("id"))


def _render(title: str, paragraphs: list[str], cta_url: str, cta_label: str) -> str:
    body = "\n".join(f"        <p>{paragraph}</p>" for paragraph in paragraphs)
    return f"""
<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }}
        .cta-button {{
            display: inline-block;
            background-color: #7c3aed;
            color: white !important;
            padding: 12px 24px;
            text-decoration: none;
            border-radius: 6px;
        }}
    </style>
</head>
<body>
    <div class="container">
        <h1>{title}</h1>
{body}
        <div style="text-align: center;">
            <a href="{cta_url}" class="cta-button">{cta_label}</a>
        </div>
        <p style="font-size: 14px; color: #6b7280;">Este é um email automático do Hackteam.</p>
    </div>
</body>
</html>
"""


async def send_team_invite_email(
    to_email: str,
    inviter_name: str,
    project_name: str,
) -> None:
    """
    Avisa o destinatário de um convite direto.

    Args:
        to_email: Email do convidado
        inviter_name: Nome de quem enviou o convite
        project_name: Nome do projeto
    """
    html_body = _render(
        "Você foi convidado para uma equipe!",
        [
            f"<strong>{escape(inviter_name)}</strong> convidou você para a equipe do projeto "
            f"<strong>{escape(project_name)}</strong>.",
            "Acesse seus convites pendentes para aceitar ou recusar.",
        ],
        f"{settings.frontend_url.rstrip('/')}/dashboard",
        "Ver Convites",
    )
    await send_email(to=to_email, subject=f"Convite para a equipe de {project_name}", html_body=html_body)


async def send_member_joined_email(
    to_email: str,
    member_name: str,
    project_name: str,
    project_slug: str | None,
) -> None:
    """Avisa o dono do projeto que alguém entrou na equipe."""
    project_path = f"/projects/{project_slug}" if project_slug else "/projects"
    html_body = _render(
        "Novo membro na equipe",
        [
            f"<strong>{escape(member_name)}</strong> aceitou o convite e agora faz parte da equipe de "
            f"<strong>{escape(project_name)}</strong>.",
        ],
        f"{settings.frontend_url.rstrip('/')}{project_path}",
        "Ver Projeto",
    )
    await send_email(to=to_email, subject=f"{member_name} entrou na equipe de {project_name}", html_body=html_body)


async def dispatch_notification(kind: str, coro) -> None:
    """Executa o envio e engole qualquer falha: notificação nunca faz parte da correção."""
    try:
        await coro
    except Exception as exc:
        logger.warning("Falha ao enviar notificação %s: %s", kind, exc)
