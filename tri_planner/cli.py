"""Command-line interface for the tri-planner training engine."""

import logging
from datetime import date, datetime, timedelta

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config, Config
from .analysis.athlete import AnchorType, AthleteProfile, TrainingBalance
from .analysis.budget import calculate_discipline_budget
from .analysis.intensity import get_intensity_advice
from .analysis.model import BanisterModel, calculate_tss
from .analysis.periodization import PHASE_INFO, calculate_phase, phase_timeline
from .analysis.rules import AllergySeverity, ReadinessColor, calculate_readiness, validate_placement
from .analysis.scheduler import AnchorBudgetScheduler, BalanceBlockScheduler
from .analysis.season import SeasonGenerator
from .analysis.workouts import CompletedLog, PlannedWorkout, WorkoutType
from .stores import EnvPreferences

console = Console()

WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
READINESS_STYLES = {ReadinessColor.GREEN: "green", ReadinessColor.YELLOW: "yellow", ReadinessColor.RED: "red"}


def parse_date(value, default=None) -> date:
    """Parse YYYY-MM-DD, falling back to `default` (or today) when empty."""
    if not value:
        return default or date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a date in YYYY-MM-DD format")


def parse_weekday(value: str) -> int:
    key = value.strip().lower()[:3]
    if key not in WEEKDAYS:
        raise click.BadParameter(f"Unknown weekday '{value}'")
    return WEEKDAYS.index(key)


def parse_enum(enum_cls, value: str):
    """Look up an enum member by value or name, case-insensitive."""
    key = value.strip().lower().replace("-", "_")
    for member in enum_cls:
        if member.value == key or member.name.lower() == key:
            return member
    raise click.BadParameter(f"Unknown {enum_cls.__name__} '{value}'. Choose from: {', '.join(m.value for m in enum_cls)}")


def get_repository():
    from .db.repository import TrainingRepository
    return TrainingRepository()


def load_profile():
    profile = get_repository().get_current_profile()
    if profile is None:
        console.print("[yellow]⚠️  No profile found, using defaults. Run 'tri-planner profile set' first.[/yellow]")
        profile = AthleteProfile()
    return profile


@click.group()
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING)")
def cli(log_level):
    """Triathlon training plan generator ("Iron Brain")."""
    logging.basicConfig(
        level=Config.get_log_level(log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.group()
def profile():
    """Show or edit the athlete profile."""


@profile.command("show")
def profile_show():
    """Show the stored athlete profile."""
    athlete = get_repository().get_current_profile()
    if athlete is None:
        console.print("[yellow]No profile stored yet.[/yellow]")
        return

    table = Table(title="Athlete Profile", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    balance = athlete.balance
    table.add_row("Goal date", str(athlete.goal_date or "-"))
    table.add_row("Balance", f"bike {balance.bike_percent}% / run {balance.run_percent}% / swim {balance.swim_percent}%"
                  + (f" ({balance.preset_name})" if balance.preset_name else ""))
    table.add_row("Strength days", str(athlete.strength_days))
    table.add_row("Long day", WEEKDAYS[athlete.long_training_day].title())
    table.add_row("FTP / Max HR", f"{athlete.ftp or '-'} W / {athlete.max_hr or '-'} bpm")
    for weekday, anchor in sorted(athlete.schedule.items()):
        types = ", ".join(t.value for t in athlete.available_types(weekday))
        table.add_row(WEEKDAYS[weekday].title(), f"{anchor.value}  [dim]({types})[/dim]")
    console.print(table)


@profile.command("set")
@click.option("--goal", help="Goal race date (YYYY-MM-DD)")
@click.option("--balance", help="Balance preset: ironman_base, balanced, run_focus, bike_focus")
@click.option("--strength-days", type=int, help="Strength sessions per week")
@click.option("--long-day", help="Long training day (mon..sun)")
@click.option("--ftp", type=int, help="Functional threshold power (W)")
@click.option("--max-hr", type=int, help="Maximum heart rate (bpm)")
@click.option("--anchor", multiple=True, help="Weekly anchor as DAY=TYPE, e.g. sun=long_run")
@click.option("--available", multiple=True, help="Availability as DAY=TYPE,TYPE, e.g. tue=run,bike")
def profile_set(goal, balance, strength_days, long_day, ftp, max_hr, anchor, available):
    """Create or update the athlete profile."""
    repo = get_repository()
    athlete = repo.get_current_profile() or AthleteProfile()

    try:
        if goal:
            athlete.goal_date = parse_date(goal)
        if balance:
            athlete.training_balance = TrainingBalance.from_name(balance)
        if strength_days is not None:
            athlete.strength_days = strength_days
        if long_day:
            athlete.long_training_day = parse_weekday(long_day)
        if ftp is not None:
            athlete.ftp = ftp
        if max_hr is not None:
            athlete.max_hr = max_hr
        if anchor:
            schedule = dict(athlete.schedule)
            for item in anchor:
                day, _, kind = item.partition("=")
                schedule[parse_weekday(day)] = parse_enum(AnchorType, kind)
            athlete.weekly_schedule = schedule
        if available:
            availability = dict(athlete.weekly_availability or {})
            for item in available:
                day, _, kinds = item.partition("=")
                availability[parse_weekday(day)] = [parse_enum(WorkoutType, k) for k in kinds.split(",") if k]
            athlete.weekly_availability = availability
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        return

    repo.save_profile(athlete)
    console.print("[green]✅ Profile saved[/green]")


@cli.group()
def log():
    """Record completed workouts."""


@log.command("add")
@click.option("--date", "day", help="Workout date (YYYY-MM-DD), defaults to today")
@click.option("--type", "workout_type", required=True, help="run, bike, swim, strength or other")
@click.option("--duration", type=int, required=True, help="Duration in minutes")
@click.option("--hr", type=int, help="Average heart rate")
@click.option("--power", type=int, help="Average power (bike)")
@click.option("--distance", type=float, help="Distance in km")
@click.option("--title", help="Activity title")
def log_add(day, workout_type, duration, hr, power, distance, title):
    """Log a completed workout and compute its TSS."""
    if duration <= 0:
        console.print("[red]❌ Duration must be positive[/red]")
        return

    kind = parse_enum(WorkoutType, workout_type)
    tss = calculate_tss(kind, duration, hr, power, load_profile())
    entry = CompletedLog(
        date=parse_date(day),
        workout_type=kind,
        duration_minutes=duration,
        computed_tss=tss,
        avg_heart_rate=hr,
        avg_power=power,
        distance_meters=distance * 1000 if distance else None,
        title=title,
    )
    get_repository().add_log(entry)
    console.print(f"[green]✅ Logged {kind.value} on {entry.date}: {duration} min, {tss} TSS[/green]")


@cli.command()
@click.option("--days", default=14, help="Number of days to show")
@click.option("--date", "day", help="Last day shown (YYYY-MM-DD)")
def metrics(days, day):
    """Show fitness (CTL), fatigue (ATL) and form (TSB)."""
    end = parse_date(day)
    start = end - timedelta(days=days - 1)
    logs = get_repository().get_all_logs()
    if not logs:
        console.print("[yellow]No workouts logged yet.[/yellow]")
        return

    history = BanisterModel().performance_history(logs, start, end)
    table = Table(title=f"Performance Metrics ({start} to {end})", box=box.ROUNDED)
    for column, style in (("Date", "cyan"), ("TSS", "yellow"), ("CTL", "green"), ("ATL", "red"), ("TSB", "blue")):
        table.add_column(column, style=style)
    for row_date, row in history.iterrows():
        table.add_row(str(row_date), f"{row.tss:.0f}", f"{row.ctl:.1f}", f"{row.atl:.1f}", f"{row.tsb:+.1f}")
    console.print(table)


@cli.command()
@click.option("--date", "day", help="Date to classify (YYYY-MM-DD)")
@click.option("--goal", help="Goal date, defaults to the profile's")
@click.option("--timeline", is_flag=True, help="Show the week-by-week phase timeline")
def phase(day, goal, timeline):
    """Show the periodization phase for a date."""
    today = parse_date(day)
    goal_date = parse_date(goal) if goal else load_profile().goal_date

    current = calculate_phase(today, goal_date)
    info = PHASE_INFO[current]
    console.print(Panel.fit(
        f"[bold]{info.display_name}[/bold]\n{info.description}\n\nFocus: {', '.join(info.focus_areas)}",
        title=f"📅 Phase on {today}",
        style="bold blue",
    ))

    if timeline and goal_date:
        table = Table(title="Phase Timeline", box=box.SIMPLE)
        table.add_column("Week", style="cyan")
        table.add_column("Start")
        table.add_column("Weeks to goal", style="yellow")
        table.add_column("Phase", style="green")
        for week in phase_timeline(today, goal_date):
            table.add_row(str(week.week_number), str(week.week_start), str(week.weeks_to_goal), week.display_name)
        console.print(table)


@cli.command()
@click.option("--tss", type=int, required=True, help="Weekly TSS target")
@click.option("--balance", default="ironman_base", help="Balance preset")
@click.option("--strength", default=2, help="Strength sessions per week")
@click.option("--recent-run", type=int, help="Recent average weekly run TSS (enables the safety clamp)")
def budget(tss, balance, strength, recent_run):
    """Preview the per-discipline split of a weekly TSS target."""
    try:
        training_balance = TrainingBalance.from_name(balance)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        return

    recent_loads = {WorkoutType.RUN: recent_run} if recent_run is not None else {}
    split = calculate_discipline_budget(tss, training_balance, strength, recent_loads)

    table = Table(title=f"Discipline Budget ({tss} TSS)", box=box.ROUNDED)
    table.add_column("Discipline", style="cyan")
    table.add_column("TSS", style="yellow")
    for workout_type, value in split.as_dict().items():
        table.add_row(workout_type.value.title(), str(value))
    table.add_row("[bold]Total[/bold]", f"[bold]{split.total_tss}[/bold]")
    console.print(table)


@cli.command()
@click.option("--start", help="Season start date (YYYY-MM-DD), defaults to next Monday")
@click.option("--months", default=3, help="Season length in months")
@click.option("--ctl", type=float, help="Current CTL, computed from the log when omitted")
@click.option("--strategy", type=click.Choice(["anchor", "block"]), default="anchor", help="Scheduling strategy")
@click.option("--save", is_flag=True, help="Store the generated plan")
def generate(start, months, ctl, strategy, save):
    """Generate a periodized training season."""
    today = date.today()
    start_date = parse_date(start, today + timedelta(days=(7 - today.weekday()) % 7 or 7))
    repo = get_repository()

    if ctl is None:
        ctl = BanisterModel().performance_metrics(repo.get_all_logs(), today).ctl

    console.print(Panel.fit(f"🧠 Iron Brain: {months} month season from {start_date} (CTL {ctl:.1f})", style="bold blue"))

    scheduler = BalanceBlockScheduler if strategy == "block" else AnchorBudgetScheduler
    generator = SeasonGenerator(repo, repo, EnvPreferences(), strategy=scheduler)
    result = generator.generate_season(start_date, ctl, months)

    if not result.success:
        console.print(f"[red]❌ {result.failure.reason}[/red]")
        console.print(f"[yellow]{result.failure.details}[/yellow]")
        return

    table = Table(title="Weekly Targets", box=box.ROUNDED)
    for column, style in (("Week", "cyan"), ("Start", "white"), ("Phase", "green"),
                          ("Target", "yellow"), ("Planned", "yellow"), ("Sim. CTL", "blue")):
        table.add_column(column, style=style)
    for week in result.weekly_targets:
        label = PHASE_INFO[week.phase].display_name + (" (recovery)" if week.is_recovery_week else "")
        table.add_row(str(week.week_number), str(week.week_start), label,
                      str(week.target_tss), str(week.planned_tss), f"{week.simulated_ctl:.1f}")
    console.print(table)
    console.print(f"\n[bold]{len(result.plans)} workouts, {result.total_tss} TSS total[/bold]")

    if save:
        count = repo.save_plans(result.plans)
        console.print(f"[green]✅ Saved {count} planned workouts[/green]")


@cli.command()
@click.option("--tsb", type=int, help="Training Stress Balance, computed from the log when omitted")
@click.option("--sleep", type=int, help="Sleep score 0-100")
@click.option("--soreness", type=int, help="Soreness 1-10 (10 = fresh)")
@click.option("--mood", type=int, help="Mood 1-10")
@click.option("--allergy", default="none", help="none, mild, moderate or severe")
def readiness(tsb, sleep, soreness, mood, allergy):
    """Show today's readiness score."""
    if tsb is None:
        tsb = int(BanisterModel().performance_metrics(get_repository().get_all_logs(), date.today()).tsb)

    status = calculate_readiness(tsb, sleep, soreness, mood, parse_enum(AllergySeverity, allergy))
    style = READINESS_STYLES[status.color]
    console.print(Panel.fit(
        f"[bold {style}]{status.score}/100[/bold {style}]\n{status.breakdown}"
        + (f"\nAllergy penalty: -{status.allergy_penalty}" if status.allergy_penalty else ""),
        title="💪 Readiness",
    ))


@cli.command()
@click.option("--type", "workout_type", required=True, help="run, bike, swim or strength")
@click.option("--tss", type=int, required=True, help="Planned TSS")
@click.option("--duration", type=int, required=True, help="Planned duration in minutes")
def advice(workout_type, tss, duration):
    """Show the intensity target for a planned session."""
    result = get_intensity_advice(parse_enum(WorkoutType, workout_type), tss, duration, load_profile())
    console.print(f"[bold]IF {result.if_factor:.2f}[/bold] - {result.zone_label}: {result.advice}")
    if result.warning:
        console.print(f"[yellow]⚠️  {result.warning}[/yellow]")


@cli.command()
@click.option("--date", "day", required=True, help="Workout date (YYYY-MM-DD)")
@click.option("--type", "workout_type", required=True, help="run, bike, swim or strength")
@click.option("--duration", default=60, help="Duration in minutes")
@click.option("--tss", default=50, help="Planned TSS")
@click.option("--sub-type", help="Session name, e.g. 'Tempo Run'")
@click.option("--commute", is_flag=True, help="Session is a commute")
def validate(day, workout_type, duration, tss, sub_type, commute):
    """Check a manual plan edit against the training rules."""
    candidate = PlannedWorkout(
        date=parse_date(day),
        workout_type=parse_enum(WorkoutType, workout_type),
        duration_minutes=duration,
        planned_tss=tss,
        sub_type=sub_type,
        is_commute=commute,
    )
    repo = get_repository()
    window_start = candidate.date - timedelta(days=14)
    history = repo.get_logs_by_date_range(window_start, candidate.date) + [
        plan for plan in repo.get_plans_by_date_range(window_start, candidate.date)
        if plan.date != candidate.date
    ]

    warnings = validate_placement(candidate, history, EnvPreferences().get_rules_config())
    if not warnings:
        console.print("[green]✅ No rule violations[/green]")
        return
    for warning in warnings:
        icon, style = ("⛔", "red") if warning.is_blocker else ("⚠️ ", "yellow")
        console.print(f"[{style}]{icon} {warning.title}: {warning.message}[/{style}]")


def main():
    """Main entry point."""
    try:
        config.validate()
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
    except ValueError as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")


if __name__ == "__main__":
    main()
