"""
Management commands, available through ``flask`` and ``manage.py``
"""

import logging

import click
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fantasy import db
from fantasy.models import Group, Match, Prediction, Tournament, User
from fantasy.services.prediction_service import PredictionService

logger = logging.getLogger(__name__)


# Match Commands
@click.group()
def match():
    """Match result commands"""
    pass


@match.command("close")
@click.argument("match_id", type=int)
@with_appcontext
def close_match(match_id):
    """Score every prediction of a match with its final result"""
    match_obj = db.session.get(Match, match_id)
    if not match_obj:
        click.echo(f"❌ Match {match_id} not found!")
        return

    success, message = PredictionService().close_match(match_obj)
    if success:
        click.echo(f"✅ {message}")
    else:
        click.echo(f"❌ {message}")


@match.command("rescore")
@with_appcontext
def rescore():
    """Recalculate points for all closed matches"""
    click.echo("Rescoring closed matches...")
    scored, failed = PredictionService().rescore_closed_matches()
    click.echo(f"✅ Rescored {scored} matches")
    if failed:
        click.echo(f"⚠️  {failed} matches could not be saved")


# Group Commands
@click.group()
def group():
    """Group commands"""
    pass


@group.command("sync")
@click.argument("group_id", type=int)
@with_appcontext
def sync_group(group_id):
    """Create missing predictions for a group"""
    try:
        created = PredictionService().synchronize_group_predictions(group_id)
        click.echo(f"✅ Created {len(created)} predictions for group {group_id}")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error syncing group {group_id}: {str(e)}")
        logger.error(f"Group sync failed - SQL error: {e}")


@group.command("sync-all")
@with_appcontext
def sync_all_groups():
    """Create missing predictions for every active group"""
    service = PredictionService()
    total = 0
    for group_obj in service.store.get_active_groups():
        try:
            created = service.synchronize_group_predictions(group_obj.id)
        except SQLAlchemyError as e:
            click.echo(f"❌ {group_obj.name}: {str(e)}")
            continue
        total += len(created)
        if created:
            click.echo(f"  {group_obj.name}: {len(created)} predictions created")

    click.echo(f"✅ Created {total} predictions")


# Database Commands
@click.group("db-cmd")
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init-db")
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@click.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("⚽ Fantasy Predictions Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    click.echo(f"👥 Active Users: {User.query.filter_by(is_active=True).count()}")
    click.echo(f"🏆 Active Groups: {Group.query.filter_by(is_active=True).count()}")
    click.echo(
        f"📅 Active Tournaments: {Tournament.query.filter_by(is_active=True).count()}"
    )

    closed = Match.query.filter_by(is_closed=True).count()
    click.echo(f"⚽ Matches: {closed}/{Match.query.count()} closed")

    pending = Prediction.query.filter(
        Prediction.goals_local.is_(None) | Prediction.goals_visitor.is_(None)
    ).count()
    click.echo(f"📝 Predictions: {Prediction.query.count()} ({pending} without goals)")
