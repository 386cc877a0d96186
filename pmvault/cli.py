#!/usr/bin/env python3
"""
pmvault - Secure Password Manager CLI
"""
import logging
import os
import sys
import time
from datetime import datetime
from typing import List, Optional

import click
import pyperclip
from tabulate import tabulate

from .errors import (
    EmptyCharsetError,
    IOFailure,
    NoVaultLoadedError,
    PMVaultError,
    VaultExistsError,
)
from .generator import GeneratorOptions, generate_password
from .manager import PasswordManager
from .models import EntryUpdate, PasswordEntry
from .storage import VAULT_FILE_NAME
from .strength import calculate_password_strength, format_strength_bar

DEFAULT_VAULT_DIR = os.path.expanduser("~/.pmvault")

# Shown for every unlock/decrypt failure so the two causes can't be told apart
VAULT_FAILURE_MESSAGE = "Wrong master password or corrupted vault."

MASKED = "••••••••"


def get_password_manager(vault_dir: str) -> PasswordManager:
    """Create a password manager for the vault directory"""
    if not os.path.exists(vault_dir):
        os.makedirs(vault_dir, mode=0o700)  # Secure directory
    return PasswordManager(os.path.join(vault_dir, VAULT_FILE_NAME))


def prompt_master_password(confirm: bool = False) -> str:
    """Prompt for master password with optional confirmation"""
    return click.prompt(
        "Master password",
        hide_input=True,
        confirmation_prompt="Confirm master password" if confirm else False,
    )


def fail(message: str) -> None:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def unlock(pm: PasswordManager) -> str:
    """Prompt for the master password and load the vault; returns the password"""
    if not pm.storage.exists():
        fail("No vault found. Create one with 'pmvault init'.")

    password = prompt_master_password()
    try:
        pm.load_vault(password)
    except (IOFailure, NoVaultLoadedError) as e:
        fail(str(e))
    except PMVaultError:
        fail(VAULT_FAILURE_MESSAGE)
    return password


def resolve_entry(pm: PasswordManager, identifier: str) -> PasswordEntry:
    """Find one entry by id, id prefix or exact website name"""
    entry = pm.get_entry(identifier)
    if entry:
        return entry

    entries = pm.list_entries()
    matches = [e for e in entries if e.id.startswith(identifier)]
    if not matches:
        matches = [e for e in entries if e.website.lower() == identifier.lower()]

    if len(matches) == 1:
        return matches[0]

    if not matches:
        fail(f"No entry found for '{identifier}'")

    click.echo(f"Multiple entries match '{identifier}':")
    for match in matches[:10]:
        click.echo(f"  • {match.id[:8]}  {match.website}  ({match.username})")
    fail("Please use the entry id")


def copy_with_timeout(password: str, timeout: int) -> bool:
    """
    Copy to the clipboard and restore the previous contents after
    `timeout` seconds.

    Waits in the foreground, since a background timer would die with the
    process and leave the password behind. Ctrl+C restores immediately.
    The clipboard is only touched again if it still holds our password.
    """
    try:
        original_clipboard = pyperclip.paste() or ""
    except pyperclip.PyperclipException:
        original_clipboard = ""

    try:
        pyperclip.copy(password)
    except pyperclip.PyperclipException:
        return False

    if timeout <= 0:
        return True

    click.echo(f"⏱️  Clipboard will auto-clear in {timeout} seconds (Ctrl+C to clear now)...")
    try:
        time.sleep(timeout)
    except KeyboardInterrupt:
        pass
    try:
        if pyperclip.paste() == password:
            pyperclip.copy(original_clipboard)
    except pyperclip.PyperclipException:
        pass
    return True


def entries_table(entries: List[PasswordEntry], show_passwords: bool) -> str:
    rows = [
        [
            entry.id[:8],
            entry.website,
            entry.username,
            entry.password if show_passwords else MASKED,
            entry.updated_at.strftime("%Y-%m-%d"),
        ]
        for entry in entries
    ]
    return tabulate(rows, headers=["ID", "Website", "Username", "Password", "Updated"], tablefmt="simple")


@click.group()
@click.version_option(version="1.0.0", prog_name="pmvault")
@click.option('--vault-dir', envvar='PMVAULT_HOME', default=DEFAULT_VAULT_DIR,
              show_default=True, help='Directory holding the vault and settings')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.pass_context
def cli(ctx, vault_dir, verbose):
    """pmvault - A secure password manager

    All entries live in one AES-256-GCM encrypted vault file protected by
    your master password. The master password is never stored.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = get_password_manager(vault_dir)


@cli.command()
@click.pass_obj
def init(pm):
    """Initialize a new password vault"""
    replace = pm.has_vault()
    if replace:
        click.echo("⚠️  Vault already exists!")
        if not click.confirm("Do you want to delete it and create a new one?"):
            return

    click.echo("🔐 Creating a new password vault...\n")
    click.echo("Choose a strong master password.")
    click.echo("This password protects all your other passwords.\n")

    password = prompt_master_password(confirm=True)

    result = calculate_password_strength(password)
    click.echo(f"Strength: {format_strength_bar(result.score)} ({result.label})")
    for item in result.feedback:
        click.echo(f"  - {item}")

    # The old vault is only removed once the new password is confirmed
    try:
        if replace:
            pm.clear_all_data()
        pm.setup_master_password(password)
    except (VaultExistsError, IOFailure) as e:
        fail(f"Error creating vault: {e}")

    click.echo("\n✅ Password vault created successfully!")
    click.echo(f"📁 Location: {pm.storage.filename}")


@cli.command()
@click.option('--website', '-w', prompt="Website", help='Website or service name')
@click.option('--username', '-u', prompt="Username", help='Username or email')
@click.option('--notes', '-n', default="", help='Optional notes about this account')
@click.option('--generate', '-g', is_flag=True, help='Generate a secure password')
@click.option('--length', '-l', default=16, type=click.IntRange(min=1), help='Generated password length')
@click.pass_obj
def add(pm, website, username, notes, generate, length):
    """Add a new entry to the vault"""
    master = unlock(pm)

    if generate:
        password = generate_password(length=length)
        click.echo(f"\n🎲 Generated password: {click.style(password, fg='green', bold=True)}")
    else:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    try:
        entry = pm.add_entry(website, username, password, notes, master_password=master)
    except PMVaultError as e:
        fail(f"Error: {e}")
    finally:
        pm.lock()

    click.echo(f"✅ Entry for {website} saved! (id {entry.id[:8]})")


@cli.command()
@click.argument('identifier')
@click.option('--show', '-S', is_flag=True, help='Show password in plain text')
@click.option('--copy', '-c', is_flag=True, help='Copy password to clipboard')
@click.pass_obj
def get(pm, identifier, show, copy):
    """Retrieve an entry by id or website"""
    unlock(pm)
    entry = resolve_entry(pm, identifier)
    settings = pm.load_settings()
    pm.lock()

    click.echo(f"\n🔐 {click.style(entry.website, bold=True)}  ({entry.id})")
    click.echo(f"👤 Username: {click.style(entry.username, fg='cyan')}")
    if show or settings.show_passwords:
        click.echo(f"🔑 Password: {click.style(entry.password, fg='yellow')}")
    else:
        click.echo(f"🔑 Password: {MASKED} (use --show to display)")
    if entry.notes:
        click.echo(f"📝 Notes: {entry.notes}")
    click.echo(f"📅 Last modified: {entry.updated_at.strftime('%Y-%m-%d %H:%M')}")

    if copy:
        if copy_with_timeout(entry.password, settings.clipboard_clear_timeout):
            click.echo("✅ Password copied to clipboard!")
        else:
            click.echo("⚠️  No clipboard available on this system", err=True)


@cli.command(name='list')
@click.option('--filter', '-f', 'query', default="", help='Filter entries by search term')
@click.pass_obj
def list_entries(pm, query):
    """List all stored entries in a table"""
    unlock(pm)
    entries = pm.search_entries(query)
    show_passwords = pm.load_settings().show_passwords
    pm.lock()

    if query:
        click.echo(f"\n🔍 Entries matching '{query}':")
    else:
        click.echo("\n📋 All stored entries:")

    if not entries:
        click.echo("  (No entries stored)")
        return

    click.echo(entries_table(entries, show_passwords))
    click.echo(f"\nTotal: {len(entries)} entries")


@cli.command()
@click.argument('query')
@click.pass_obj
def search(pm, query):
    """Search entries by website, username or notes"""
    unlock(pm)
    entries = pm.search_entries(query)
    show_passwords = pm.load_settings().show_passwords
    pm.lock()

    if not entries:
        click.echo(f"No entries match '{query}'")
        return
    click.echo(entries_table(entries, show_passwords))


@cli.command()
@click.argument('identifier')
@click.option('--website', '-w', help='New website')
@click.option('--username', '-u', help='New username')
@click.option('--notes', '-n', help='New notes')
@click.option('--password', '-p', 'change_password', is_flag=True, help='Prompt for a new password')
@click.option('--generate', '-g', is_flag=True, help='Generate a new password')
@click.option('--length', '-l', default=16, type=click.IntRange(min=1), help='Generated password length')
@click.pass_obj
def update(pm, identifier, website, username, notes, change_password, generate, length):
    """Update an existing entry"""
    master = unlock(pm)
    entry = resolve_entry(pm, identifier)

    new_password: Optional[str] = None
    if generate:
        new_password = generate_password(length=length)
        click.echo(f"🎲 Generated password: {click.style(new_password, fg='green', bold=True)}")
    elif change_password:
        new_password = click.prompt("New password", hide_input=True, confirmation_prompt=True)

    changes = EntryUpdate(website=website, username=username, password=new_password, notes=notes)
    if changes.is_empty():
        pm.lock()
        click.echo("Nothing to update.")
        return

    try:
        pm.update_entry(entry.id, changes, master_password=master)
    except PMVaultError as e:
        fail(f"Error: {e}")
    finally:
        pm.lock()

    click.echo(f"✅ Entry {entry.id[:8]} updated!")


@cli.command()
@click.argument('identifier')
@click.option('--force', '-f', is_flag=True, help='Skip confirmation prompt')
@click.pass_obj
def delete(pm, identifier, force):
    """Delete an entry from the vault"""
    master = unlock(pm)
    entry = resolve_entry(pm, identifier)

    if not force and not click.confirm(f"Delete entry for {entry.website} ({entry.username})?"):
        pm.lock()
        click.echo("Cancelled.")
        return

    try:
        pm.delete_entry(entry.id, master_password=master)
    except PMVaultError as e:
        fail(f"Error: {e}")
    finally:
        pm.lock()

    click.echo(f"✅ Entry for {entry.website} deleted!")


@cli.command()
@click.option('--length', '-l', default=16, type=int, help='Password length')
@click.option('--count', '-c', default=1, type=click.IntRange(min=1), help='Number of passwords to generate')
@click.option('--no-uppercase', is_flag=True, help='Exclude uppercase letters')
@click.option('--no-lowercase', is_flag=True, help='Exclude lowercase letters')
@click.option('--no-numbers', is_flag=True, help='Exclude numbers')
@click.option('--no-symbols', is_flag=True, help='Exclude symbols')
@click.option('--numbers', 'numbers_count', type=click.IntRange(min=0), help='Minimum number of digits')
@click.option('--symbols', 'symbols_count', type=click.IntRange(min=0), help='Minimum number of symbols')
def generate(length, count, no_uppercase, no_lowercase, no_numbers, no_symbols, numbers_count, symbols_count):
    """Generate secure passwords without saving them"""
    options = GeneratorOptions(
        length=length,
        include_uppercase=not no_uppercase,
        include_lowercase=not no_lowercase,
        include_numbers=not no_numbers,
        include_symbols=not no_symbols,
        numbers_count=numbers_count,
        symbols_count=symbols_count,
    )

    try:
        passwords = [generate_password(options) for _ in range(count)]
    except EmptyCharsetError as e:
        fail(str(e))
    except ValueError as e:
        fail(f"Error: {e}")

    for i, password in enumerate(passwords, 1):
        if count == 1:
            click.echo(click.style(password, fg='green', bold=True))
        else:
            click.echo(f"{i}. {click.style(password, fg='green', bold=True)}")


@cli.command()
@click.argument('password', required=False)
def strength(password):
    """Score a password's strength (prompts if not given)"""
    if password is None:
        password = click.prompt("Password", hide_input=True, default="", show_default=False)

    result = calculate_password_strength(password)
    click.echo(f"Strength: {format_strength_bar(result.score)} ({result.label})")
    if result.feedback:
        click.echo("Suggestions:")
        for item in result.feedback:
            click.echo(f"  - {item}")


@cli.command(name='export')
@click.argument('file', type=click.Path(dir_okay=False, writable=True))
@click.pass_obj
def export_vault(pm, file):
    """Export the encrypted vault to a .pmvault file"""
    master = unlock(pm)
    try:
        pm.export_vault_file(master, path=file)
    except PMVaultError as e:
        fail(f"Error: {e}")
    finally:
        pm.lock()
    click.echo(f"✅ Vault exported to {file}")


@cli.command(name='import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_vault(pm, file):
    """Import a .pmvault file, replacing the current vault"""
    if pm.storage.exists() and not click.confirm("This replaces your current vault. Continue?"):
        click.echo("Cancelled.")
        return

    with open(file, 'rb') as f:
        data = f.read()

    password = prompt_master_password()
    try:
        vault = pm.import_vault_file(data, password)
    except IOFailure as e:
        fail(str(e))
    except PMVaultError:
        fail(VAULT_FAILURE_MESSAGE)
    finally:
        pm.lock()

    click.echo(f"✅ Imported vault with {len(vault.entries)} entries")


@cli.command()
@click.option('--auto-lock', type=click.IntRange(min=1),
              help='Auto-lock timeout in minutes (for long-running clients)')
@click.option('--clipboard-timeout', type=click.IntRange(min=0), help='Clipboard clear timeout in seconds')
@click.option('--show-passwords/--hide-passwords', default=None, help='Reveal passwords in listings')
@click.pass_obj
def settings(pm, auto_lock, clipboard_timeout, show_passwords):
    """Show or change settings

    The auto-lock timeout is stored for clients that keep a vault open.
    Every pmvault command locks the vault again before it exits.
    """
    current = pm.load_settings()
    changed = False
    if auto_lock is not None:
        current.auto_lock_timeout = auto_lock
        changed = True
    if clipboard_timeout is not None:
        current.clipboard_clear_timeout = clipboard_timeout
        changed = True
    if show_passwords is not None:
        current.show_passwords = show_passwords
        changed = True

    if changed:
        try:
            pm.save_settings(current)
        except IOFailure as e:
            fail(str(e))
        click.echo("✅ Settings saved")

    click.echo(tabulate(
        [
            ["Auto-lock timeout", f"{current.auto_lock_timeout} min"],
            ["Clipboard clear timeout", f"{current.clipboard_clear_timeout} s"],
            ["Show passwords", "yes" if current.show_passwords else "no"],
        ],
        tablefmt="plain",
    ))


@cli.command()
@click.pass_obj
def info(pm):
    """Show vault information"""
    unlock(pm)
    details = pm.get_vault_info()
    pm.lock()

    file_info = details["file_info"] or {}
    modified = file_info.get("modified")
    click.echo(tabulate(
        [
            ["Location", pm.storage.filename],
            ["Version", details["version"]],
            ["Entries", details["entry_count"]],
            ["Last modified", details["last_modified"]],
            ["File size", f"{file_info.get('size', 0)} bytes"],
            ["File written", datetime.fromtimestamp(modified).isoformat() if modified else "-"],
            ["Permissions", file_info.get("permissions", "-")],
        ],
        tablefmt="plain",
    ))


@cli.command()
@click.option('--force', '-f', is_flag=True, help='Skip confirmation prompt')
@click.pass_obj
def reset(pm, force):
    """Delete the vault and all settings (cannot be undone!)"""
    if not force and not click.confirm("⚠️  Permanently delete your vault and settings?"):
        click.echo("Cancelled.")
        return
    try:
        pm.clear_all_data()
    except IOFailure as e:
        fail(str(e))
    click.echo("🗑️  All vault data deleted.")


if __name__ == '__main__':
    cli()
