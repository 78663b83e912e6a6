"""Telegram session setup: credentials, client factory and interactive login.

Secrets come from the environment (loaded with python-dotenv) so nothing
sensitive lives in config.json or the repo.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from getpass import getpass
from typing import Optional

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)

# Environment variables whose values must never reach the logs.
SECRET_ENV_VARS = ("API_HASH", "2FA", "PHONE")


@dataclass(frozen=True)
class SessionCredentials:
    api_id: int
    api_hash: str
    session_name: str
    phone: Optional[str] = None
    password: Optional[str] = None
    login_method: Optional[str] = None


def credentials_from_env() -> SessionCredentials:
    """Read Telegram credentials from the environment (.env is honored)."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")
    try:
        parsed_id = int(api_id)
    except ValueError as exc:
        raise RuntimeError(f"API_ID must be an integer, got {api_id!r}") from exc

    method = (os.getenv("LOGIN_METHOD") or "").strip().lower() or None
    return SessionCredentials(
        api_id=parsed_id,
        api_hash=api_hash,
        session_name=os.getenv("SESSION_NAME", "linkscope"),
        phone=os.getenv("PHONE") or None,
        password=os.getenv("2FA") or None,
        login_method=method if method in {"qr", "phone"} else None,
    )


def build_client(credentials: SessionCredentials) -> TelegramClient:
    """Create a Telethon client; the session name maps to a local .session file."""

    LOGGER.info("Initializing Telegram client (session %s)", credentials.session_name)
    return TelegramClient(credentials.session_name, credentials.api_id, credentials.api_hash)


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _password(credentials: SessionCredentials) -> str:
    return credentials.password or getpass("2FA password: ")


async def _login_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    _print_qr(qr.url)
    await qr.wait(timeout=120)


async def _login_with_phone(client: TelegramClient, credentials: SessionCredentials) -> None:
    phone = credentials.phone or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    await client.sign_in(phone=phone, code=code)


def _ask_login_method() -> str:
    while True:
        print("")
        print("Login methods:")
        print("[1] QR code")
        print("[2] Phone code")
        print("[3] Exit")
        choice = input("linkscope > ").strip()
        if choice == "1":
            return "qr"
        if choice == "2":
            return "phone"
        if choice == "3":
            raise SystemExit(0)
        print("Invalid option. Please choose 1, 2, or 3.")


async def authorize(client: TelegramClient, credentials: SessionCredentials) -> None:
    """Log in interactively unless the session file is already authorized."""

    if await client.is_user_authorized():
        return

    method = credentials.login_method or _ask_login_method()
    try:
        if method == "phone":
            await _login_with_phone(client, credentials)
        else:
            await _login_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_password(credentials))

    me = await client.get_me()
    LOGGER.info("Logged in as %s", getattr(me, "username", None) or getattr(me, "first_name", "?"))
