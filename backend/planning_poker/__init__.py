from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from planning_poker.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from planning_poker.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from planning_poker.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app)

    @click.command('show-config')
    def show_config_command():
        """Prints the effective planning poker settings."""
        cfg = flask_app.config
        click.echo(f"deck: {', '.join(str(v) for v in cfg['VOTE_DECK'])}")
        click.echo(f"min players to start: {cfg['MIN_PLAYERS_TO_START']}")
        click.echo(f"reveal delay: {cfg['REVEAL_DELAY_SEC']}s")
        click.echo(f"strict mode: {'on' if cfg['STRICT_MODE'] else 'off'}")
        click.echo(f"default room: {cfg['DEFAULT_ROOM_ID']}")
        click.echo(f"empty room grace: {cfg['ROOM_EVICT_GRACE_SEC']}s")

    flask_app.cli.add_command(show_config_command)

    return flask_app
