from arcade_scores import db

PLAYER_NAME_MAX_LENGTH = 10


class LeaderboardEntry(db.Model):
    """One ranked score, addressed individually by (category, rank)."""
    __tablename__ = 'leaderboard_entry'
    category = db.Column(db.String(32), primary_key=True)
    rank = db.Column(db.Integer, primary_key=True, autoincrement=False)
    player_name = db.Column(db.String(PLAYER_NAME_MAX_LENGTH), nullable=False)
    score = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.BigInteger, nullable=False)  # epoch ms

