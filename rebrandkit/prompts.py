"""
Interactive prompts.

The pipeline only sees two callables: a yes/no confirmation and a signing
credential prompt. These are the terminal implementations used by the CLI.
"""

from __future__ import annotations

from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from .models.project import DistinguishedName, SigningCredentials
from .services.credentials.service import CredentialPrompt
from .services.materializer.service import ConfirmCallback

console = Console()


def make_confirm(assume_yes: bool = False) -> ConfirmCallback:
    """Build the overwrite confirmation; with assume_yes every question is answered yes."""

    def confirm(message: str) -> bool:
        if assume_yes:
            console.print(f"[dim]{message} -> yes[/dim]")
            return True
        return Confirm.ask(f"[yellow]{message}[/yellow]", default=False, console=console)

    return confirm


def _ask_password() -> SecretStr:
    while True:
        password = Prompt.ask("Keystore password (min. 6 characters)", password=True, console=console)
        if len(password) < 6:
            console.print("[red]Password must be at least 6 characters[/red]")
            continue
        again = Prompt.ask("Repeat password", password=True, console=console)
        if password != again:
            console.print("[red]Passwords do not match[/red]")
            continue
        return SecretStr(password)


def make_credential_prompt(default_validity_days: int = 10000) -> CredentialPrompt:
    """Build the prompt that collects keystore parameters on first release build."""

    def prompt() -> SigningCredentials:
        console.print("\n[bold]No upload keystore cached for this template, creating one.[/bold]")
        console.print("[dim]Keep the password safe: every future update must be signed with this key.[/dim]\n")
        while True:
            alias = Prompt.ask("Key alias", default="upload", console=console)
            password = _ask_password()
            validity = IntPrompt.ask("Validity (days)", default=default_validity_days, console=console)
            try:
                return SigningCredentials(
                    alias=alias,
                    password=password,
                    validity_days=validity,
                    distinguished_name=DistinguishedName(
                        common_name=Prompt.ask("Your first and last name", console=console),
                        organizational_unit=Prompt.ask("Organizational unit", default="", console=console),
                        organization=Prompt.ask("Organization", default="", console=console),
                        locality=Prompt.ask("City or locality", default="", console=console),
                        state=Prompt.ask("State or province", default="", console=console),
                        country=Prompt.ask("Two-letter country code", default="", console=console),
                    ),
                )
            except PydanticValidationError as e:
                console.print(f"[red]{e}[/red]")

    return prompt
