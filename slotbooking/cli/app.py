"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.api_client import BookingApiClient
from ..adapters.cart_store import CartStore
from ..adapters.mock_api_client import MockBookingApiClient
from ..adapters.session_store import SessionStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AuthenticationRequired, BookingError, SlotNotAvailable, UnknownCartLine
from ..domain.models import CustomerIdentity
from ..domain.recurrence import ViewWindow, expand_exceptions
from ..services.booking_orchestrator import BookingOrchestrator
from ..services.cart import ANY_EMPLOYEE, BookingCart

app = typer.Typer(
    name="slotbooking",
    help="Find appointment slots and book several services in one go",
    add_completion=False,
)
cart_app = typer.Typer(help="Manage the stored booking cart")
app.add_typer(cart_app, name="cart")

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of the API.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_client(config: AppConfig, mock: bool, identity: Optional[CustomerIdentity] = None):
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled schedule data[/yellow]\n")
        return MockBookingApiClient()
    return BookingApiClient(
        base_url=config.api.base_url,
        access_token=identity.token if identity else None,
        timeout=config.api.timeout_seconds,
    )


def _employee_choice(config: AppConfig, value: str):
    """Map "any", an employee id or an employee name to a choice."""
    if value.lower() == ANY_EMPLOYEE:
        return ANY_EMPLOYEE
    employee = config.find_employee(value)
    if employee is None:
        raise typer.BadParameter(f"Unknown employee: '{value}'")
    return employee.id


def _employee_name(config: AppConfig, employee_id) -> str:
    employee = config.find_employee(str(employee_id))
    return employee.name if employee else str(employee_id)


def _parse_line(value: str) -> Tuple[str, str, str, str]:
    """Split SERVICE@DATE@TIME[@EMPLOYEE]."""
    parts = [part.strip() for part in value.split("@")]
    if len(parts) == 3:
        parts.append(ANY_EMPLOYEE)
    if len(parts) != 4 or not all(parts):
        raise typer.BadParameter(
            f"Invalid line '{value}'. Expected SERVICE@YYYY-MM-DD@TIME[@EMPLOYEE]."
        )
    return parts[0], parts[1], parts[2], parts[3]


def _prompt_selections(config: AppConfig, service_ids: List) -> List[Tuple[str, str, Optional[str], str]]:
    """
    Ask for the date and professional of every service in the stored cart.

    The time is asked later, once the available slots are known.
    """
    selections = []
    for service_id in service_ids:
        service = config.find_service(service_id)
        if service is None:
            continue
        console.print(f"\n[bold cyan]{service.name}[/bold cyan] ({service.duration_minutes} min)")
        date = typer.prompt("Date (YYYY-MM-DD)")
        employee = typer.prompt("Professional ('any', id or name)", default=ANY_EMPLOYEE)
        selections.append((str(service.id), date, None, employee))
    return selections


@app.command()
def slots(
    service_id: Annotated[str, typer.Argument(help="Service id from the config")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    employee: Annotated[str, typer.Option("--employee", "-e", help="'any', an employee id or name")] = ANY_EMPLOYEE,
    chronological: Annotated[bool, typer.Option("--sorted", help="Sort times chronologically")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show bookable times for a service on a date.

    Examples:

        slotbooking slots 12 2025-04-10
        slotbooking slots 12 2025-04-10 --employee alice --mock
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = config.find_service(service_id)
        if service is None:
            console.print(f"[bold red]Error:[/bold red] Unknown service '{service_id}'")
            raise typer.Exit(1)

        client = _build_client(config, mock)
        orchestrator = BookingOrchestrator(
            schedule_client=client,
            appointment_client=client,
            roster=config.eligible_employee_ids,
            account_id=config.account_id,
            timezone=config.timezone,
        )
        cart = BookingCart.from_service_ids([service.id], config.to_catalog())

        async def _load():
            await orchestrator.choose_employee(cart, service.id, _employee_choice(config, employee))
            return await orchestrator.choose_date(cart, service.id, date)

        line = asyncio.run(_load())
        time_slots = line.time_slots
        if chronological:
            time_slots = sorted(time_slots, key=lambda slot: slot.time.minutes)

        if not time_slots:
            console.print("[yellow]⚠ No available time slots for this day.[/yellow]")
            return

        table = Table(
            title=f"{service.name} on {line.date.isoformat()} ({service.duration_minutes} min)",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Time", style="bold yellow")
        table.add_column("Professionals", style="dim")

        for slot in time_slots:
            names = ", ".join(_employee_name(config, employee_id) for employee_id in slot.employee_ids)
            table.add_row(slot.label, names)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command("time-off")
def time_off(
    employee: Annotated[str, typer.Argument(help="Employee id or name")],
    month: Annotated[Optional[str], typer.Option("--month", "-m", help="Month (YYYY-MM), defaults to this month")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List an employee's time off for a month, with repeats expanded per day.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        employee_id = _employee_choice(config, employee)
        if employee_id == ANY_EMPLOYEE:
            raise typer.BadParameter("time-off needs a specific employee")

        if month:
            first = pendulum.from_format(month, "YYYY-MM")
        else:
            first = pendulum.now(config.timezone)
        window = ViewWindow.for_month(first.year, first.month)

        client = _build_client(config, mock)
        exceptions = asyncio.run(client.list_time_offs(employee_id))
        occurrences = expand_exceptions(exceptions, window)

        if not occurrences:
            console.print(f"[green]No time off in {window.start.format('MMMM YYYY')}.[/green]")
            return

        table = Table(
            title=f"Time off for {_employee_name(config, employee_id)}, {window.start.format('MMMM YYYY')}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Date", style="bold yellow")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Note", style="dim")
        table.add_column("Key", style="dim")

        for occurrence in occurrences:
            table.add_row(
                occurrence.date.format("ddd DD.MM.YYYY"),
                occurrence.start_time.label,
                occurrence.end_time.label,
                occurrence.exception.note or "",
                occurrence.key,
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    lines: Annotated[Optional[List[str]], typer.Option("--line", "-l", help="SERVICE@YYYY-MM-DD@TIME[@EMPLOYEE], repeatable. Defaults to the stored cart.")] = None,
    customer_id: Annotated[Optional[int], typer.Option("--customer-id", help="Book for this customer instead of the stored session")] = None,
    fail_service: Annotated[Optional[List[str]], typer.Option("--fail-service", help="Mock mode: reject this service")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Book several services in one checkout.

    Without --line the services come from the stored cart (see 'slotbooking cart add')
    and the date, professional and time of each one are asked interactively.

    Examples:

        slotbooking book --mock -l "12@2025-04-10@10:00 AM" -l "14@2025-04-10@11:30 AM@alice" --customer-id 5
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        session_store = SessionStore(account_id=config.account_id, session_file=config.session_file)
        identity = CustomerIdentity(customer_id=customer_id) if customer_id else session_store.load()

        if lines:
            parsed = [_parse_line(value) for value in lines]
        else:
            stored_ids = CartStore(config.cart_file).load_service_ids(config.account_id)
            parsed = _prompt_selections(config, stored_ids)
            if not parsed:
                console.print(
                    "[yellow]Your cart is empty. Add services with 'slotbooking cart add' or pass --line.[/yellow]"
                )
                raise typer.Exit(1)
        if mock:
            console.print("[yellow]⚠  MOCK MODE: using bundled schedule data[/yellow]\n")
            client = MockBookingApiClient(fail_service_ids=fail_service or ())
        else:
            client = _build_client(config, mock, identity)

        orchestrator = BookingOrchestrator(
            schedule_client=client,
            appointment_client=client,
            roster=config.eligible_employee_ids,
            account_id=config.account_id,
            timezone=config.timezone,
        )
        cart = BookingCart.from_service_ids([line[0] for line in parsed], config.to_catalog())
        if len(cart) != len(parsed):
            console.print("[bold red]Error:[/bold red] Unknown or duplicate service in --line options")
            raise typer.Exit(1)

        async def _checkout():
            for service_id, date, time, employee in parsed:
                await orchestrator.choose_employee(cart, service_id, _employee_choice(config, employee))
                line = await orchestrator.choose_date(cart, service_id, date)
                if time is None:
                    if not line.time_slots:
                        raise SlotNotAvailable(f"No available time slots for {line.service.name} on {date}")
                    console.print(
                        f"Available for {line.service.name}: "
                        + ", ".join(slot.label for slot in line.time_slots)
                    )
                    time = typer.prompt(f"Time for {line.service.name}")
                orchestrator.choose_time(cart, service_id, time)
            return await orchestrator.confirm(cart, identity)

        outcome = asyncio.run(_checkout())

        table = Table(title="Booking result", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim")
        table.add_column("Service", style="bold yellow")
        table.add_column("Start")
        table.add_column("Professional")
        table.add_column("Appointment")

        for position, created in enumerate(outcome.succeeded, start=1):
            request = created.request
            table.add_row(
                str(position),
                config.find_service(created.service_id).name,
                pendulum.instance(request.start_date_time).format("DD.MM.YYYY HH:mm"),
                _employee_name(config, request.employee_id),
                f"[green]✓ {created.appointment_id}[/green]",
            )
        if outcome.failed:
            table.add_row(
                str(outcome.failed.position),
                outcome.failed.service_name,
                "",
                "",
                "[red]✗ failed[/red]",
            )

        console.print()
        console.print(table)

        if outcome.is_complete:
            CartStore(config.cart_file).clear()
            console.print(Panel.fit(
                f"[bold green]✓ Booking confirmed[/bold green]\n\n"
                f"[bold]Reference:[/bold] {outcome.reference.canonical_id}\n"
                f"[bold]Appointments:[/bold] {outcome.reference.as_query()}",
                title="✓ Done",
            ))
            return

        console.print(Panel.fit(
            f"[bold red]✗ {outcome.failed.service_name} could not be booked:[/bold red] {outcome.failed.error}\n\n"
            f"{len(outcome.succeeded)} earlier appointment(s) were created and remain booked.",
            title="Partial booking",
        ))
        raise typer.Exit(2)

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except AuthenticationRequired as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        console.print("Run 'slotbooking login --customer-id ID' and book again.")
        raise typer.Exit(1)

    except (BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@cart_app.command("add")
def cart_add(
    service_id: Annotated[str, typer.Argument(help="Service id from the config")],
    config_file: ConfigOption = None,
):
    """Add a service to the stored cart."""
    try:
        config = _load_config(config_file)
        service = config.find_service(service_id)
        if service is None:
            console.print(f"[bold red]Error:[/bold red] Unknown service '{service_id}'")
            raise typer.Exit(1)
        CartStore(config.cart_file).add(service.id, config.account_id)
        console.print(f"[green]✓ {service.name} added to your booking.[/green]")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@cart_app.command("remove")
def cart_remove(
    service_id: Annotated[str, typer.Argument(help="Service id from the config")],
    config_file: ConfigOption = None,
):
    """Remove a service from the stored cart."""
    try:
        config = _load_config(config_file)
        store = CartStore(config.cart_file)
        cart = BookingCart.from_service_ids(store.load_service_ids(config.account_id), config.to_catalog())
        try:
            cart.line(service_id)
        except UnknownCartLine:
            console.print(f"[yellow]Service '{service_id}' is not in your booking.[/yellow]")
            raise typer.Exit(1)
        cart.remove_service(service_id)
        store.save(cart, config.account_id)
        console.print(f"[green]✓ Service {service_id} removed from your booking.[/green]")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@cart_app.command("show")
def cart_show(config_file: ConfigOption = None):
    """Show the stored cart."""
    try:
        config = _load_config(config_file)
        service_ids = CartStore(config.cart_file).load_service_ids(config.account_id)
        cart = BookingCart.from_service_ids(service_ids, config.to_catalog())

        if cart.is_empty:
            console.print("[yellow]You don't have any services in your booking yet.[/yellow]")
            return

        table = Table(title="Your booking", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="dim")
        table.add_column("Service", style="bold yellow")
        table.add_column("Duration")
        table.add_column("Price")
        for line in cart:
            table.add_row(
                str(line.service_id),
                line.service.name,
                f"{line.service.duration_minutes} min",
                f"{line.service.price:.2f}",
            )
        console.print()
        console.print(table)
        console.print()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@cart_app.command("clear")
def cart_clear(config_file: ConfigOption = None):
    """Empty the stored cart."""
    try:
        config = _load_config(config_file)
        CartStore(config.cart_file).clear()
        console.print("[green]✓ Cart cleared.[/green]")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def login(
    customer_id: Annotated[int, typer.Option("--customer-id", min=1, help="Id of the signed-in customer")],
    token: Annotated[Optional[str], typer.Option("--token", help="Bearer token for the booking API")] = None,
    config_file: ConfigOption = None,
):
    """
    Remember the signed-in customer so 'book' can confirm without --customer-id.

    Sign-in itself happens in the booking site; this stores the result.
    """
    try:
        config = _load_config(config_file)
        store = SessionStore(account_id=config.account_id, session_file=config.session_file)
        store.save(CustomerIdentity(customer_id=customer_id, token=token))
        if store.insecure_storage_warning:
            console.print(f"[yellow]⚠ {store.insecure_storage_warning}[/yellow]")
        console.print(f"[green]✓ Signed in as customer {customer_id}.[/green]")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def logout(config_file: ConfigOption = None):
    """Forget the stored customer session."""
    try:
        config = _load_config(config_file)
        SessionStore(account_id=config.account_id, session_file=config.session_file).clear()
        console.print("[green]✓ Signed out.[/green]")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
