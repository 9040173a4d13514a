from flask import Blueprint, jsonify, request, current_app
from arcade_scores.services.leaderboard import (
    TransportError,
    UnknownCategoryError,
    ValidationError,
)


scores = Blueprint('scores', __name__)


def _service():
    return current_app.extensions['leaderboard']


def _limit(default: int) -> int:
    try:
        return int(request.args.get('limit', default))
    except (TypeError, ValueError):
        return default


@scores.errorhandler(TransportError)
def handle_transport_error(exc):
    current_app.logger.error(f"[transport] path={request.path} error={exc}")
    return jsonify({'error': 'Leaderboard store unavailable'}), 503


@scores.errorhandler(ValidationError)
def handle_validation_error(exc):
    return jsonify({'error': str(exc)}), 400


@scores.route('', methods=['GET'])
def get_all_leaderboards():
    return jsonify(_service().get_all_leaderboards(_limit(3)))


@scores.route('/games', methods=['GET'])
def list_games():
    return jsonify([cfg.to_dict() for cfg in _service().categories.values()])


@scores.route('/<string:game_id>', methods=['GET'])
def get_leaderboard(game_id):
    try:
        return jsonify(_service().get_leaderboard(game_id, _limit(10)))
    except UnknownCategoryError as exc:
        return jsonify({'error': str(exc)}), 404


@scores.route('/<string:game_id>/rank', methods=['GET'])
def check_rank(game_id):
    score = request.args.get('score', type=float)
    if score is None:
        return jsonify({'error': 'score query parameter is required'}), 400
    try:
        result = _service().check(game_id, score)
    except UnknownCategoryError as exc:
        return jsonify({'qualified': False, 'rank': -1, 'error': str(exc)}), 404
    return jsonify(result.to_dict())


@scores.route('/<string:game_id>', methods=['POST'])
def submit_score(game_id):
    data = request.get_json(silent=True) or {}
    player_name = data.get('playerName')
    score = data.get('score')
    if not player_name or score is None:
        return jsonify({'error': 'playerName and score are required'}), 400

    try:
        result = _service().submit(game_id, player_name, score)
    except UnknownCategoryError as exc:
        return jsonify({'qualified': False, 'rank': -1, 'error': str(exc)}), 404
    return jsonify(result.to_dict())
