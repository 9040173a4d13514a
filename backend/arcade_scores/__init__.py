from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_class=Config, store=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=flask_app.config.get('CORS_ORIGINS', '*'))

    # Models must be imported before migrations or create_all see the metadata
    from arcade_scores import models  # noqa: F401
    from arcade_scores.services.leaderboard import (
        LeaderboardService,
        UnknownCategoryError,
        build_store,
        format_score,
        load_categories,
    )
    from arcade_scores.models import PLAYER_NAME_MAX_LENGTH

    categories = load_categories(capacity=flask_app.config.get('LEADERBOARD_CAPACITY'))
    if store is None:
        store = build_store(
            flask_app.config.get('LEADERBOARD_BACKEND', 'remote'),
            local_path=flask_app.config.get('LEADERBOARD_LOCAL_PATH'),
            categories=categories,
        )
    name_max = min(int(flask_app.config.get('LEADERBOARD_NAME_MAX_LENGTH', PLAYER_NAME_MAX_LENGTH)),
                   PLAYER_NAME_MAX_LENGTH)
    flask_app.extensions['leaderboard'] = LeaderboardService(
        store, categories=categories, name_max_length=name_max,
    )
    flask_app.logger.info(
        f"[startup] backend={flask_app.config.get('LEADERBOARD_BACKEND', 'remote')} "
        f"store={type(store).__name__} categories={len(categories)}"
    )

    from arcade_scores.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the leaderboard table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('leaderboard-repair')
    @click.argument('game', required=False)
    def leaderboard_repair_command(game):
        """Re-sorts and re-numbers one game's leaderboard, or all of them."""
        service = flask_app.extensions['leaderboard']
        with flask_app.app_context():
            try:
                results = service.repair(game)
            except UnknownCategoryError as exc:
                raise click.ClickException(str(exc))
        for category, writes in results.items():
            print(f'{category}: {writes} write(s)')

    @click.command('leaderboard-show')
    @click.argument('game')
    @click.option('--limit', default=10, show_default=True, help='Number of entries to print.')
    def leaderboard_show_command(game, limit):
        """Prints a game's leaderboard with formatted scores."""
        service = flask_app.extensions['leaderboard']
        try:
            config = service.config_for(game)
        except UnknownCategoryError as exc:
            raise click.ClickException(str(exc))
        with flask_app.app_context():
            entries = service.get_leaderboard(game, limit)
        print(f'{config.icon} {config.name}')
        if not entries:
            print('No scores yet. Be the first!')
        for rank, entry in enumerate(entries, start=1):
            print(f"#{rank:<3} {entry['playerName']:<10} {format_score(config, entry['score'])}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(leaderboard_repair_command)
    flask_app.cli.add_command(leaderboard_show_command)

    return flask_app
