from arcade_scores.services.leaderboard import Entry, OrderingDirection, format_score, load_categories
from arcade_scores.services.leaderboard.categories import CATEGORIES, CategoryId
from conftest import scores_of, seed


def test_leaderboard_show_formats_scores(flask_app, sql_store):
    seed(sql_store, 'bedtime-berzerk', [61000, 125000])
    result = flask_app.test_cli_runner().invoke(args=['leaderboard-show', 'bedtime-berzerk'])
    assert result.exit_code == 0
    assert 'Bedtime Berzerk' in result.output
    assert '1:01' in result.output
    assert '2:05' in result.output


def test_leaderboard_show_empty_and_unknown(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['leaderboard-show', 'pong'])
    assert 'No scores yet' in result.output
    result = runner.invoke(args=['leaderboard-show', 'tetris'])
    assert result.exit_code != 0
    assert 'Unknown game' in result.output


def test_leaderboard_repair_command(flask_app, sql_store):
    sql_store.put_entry(Entry('pong', 1, 'A', 3, 1))
    sql_store.put_entry(Entry('pong', 2, 'B', 9, 2))
    result = flask_app.test_cli_runner().invoke(args=['leaderboard-repair', 'pong'])
    assert result.exit_code == 0
    assert 'pong: 2 write(s)' in result.output
    assert scores_of(sql_store, 'pong') == [9, 3]


def test_format_score_per_metric():
    assert format_score(CATEGORIES[CategoryId.BEDTIME_BERZERK], 65432) == '1:05'
    assert format_score(CATEGORIES[CategoryId.CITY_RUNNER], 123.9) == '123m'
    assert format_score(CATEGORIES[CategoryId.HOMERUN_DERBY], 410.2) == '410 ft'
    assert format_score(CATEGORIES[CategoryId.SNAKE], 12345) == '12,345'
    assert format_score(CATEGORIES[CategoryId.PONG], 1) == '1 win'
    assert format_score(CATEGORIES[CategoryId.PONG], 4) == '4 wins'
    assert format_score(None, 7) == '7'


def test_registry_directions():
    categories = load_categories()
    assert len(categories) == len(CategoryId)
    assert categories[CategoryId.BEDTIME_BERZERK].direction is OrderingDirection.LOWER_IS_BETTER
    assert all(
        cfg.direction is OrderingDirection.HIGHER_IS_BETTER
        for cid, cfg in categories.items() if cid is not CategoryId.BEDTIME_BERZERK
    )
