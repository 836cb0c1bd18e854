"""Team name normalization and predicted-side detection."""

from typing import Optional


# Full names and nicknames map to the standard abbreviation
TEAM_ABBREVIATIONS = {
    'arizona cardinals': 'ARI', 'cardinals': 'ARI',
    'atlanta falcons': 'ATL', 'falcons': 'ATL',
    'baltimore ravens': 'BAL', 'ravens': 'BAL',
    'buffalo bills': 'BUF', 'bills': 'BUF',
    'carolina panthers': 'CAR', 'panthers': 'CAR',
    'chicago bears': 'CHI', 'bears': 'CHI',
    'cincinnati bengals': 'CIN', 'bengals': 'CIN',
    'cleveland browns': 'CLE', 'browns': 'CLE',
    'dallas cowboys': 'DAL', 'cowboys': 'DAL',
    'denver broncos': 'DEN', 'broncos': 'DEN',
    'detroit lions': 'DET', 'lions': 'DET',
    'green bay packers': 'GB', 'packers': 'GB',
    'houston texans': 'HOU', 'texans': 'HOU',
    'indianapolis colts': 'IND', 'colts': 'IND',
    'jacksonville jaguars': 'JAX', 'jaguars': 'JAX',
    'kansas city chiefs': 'KC', 'chiefs': 'KC',
    'las vegas raiders': 'LV', 'raiders': 'LV',
    'los angeles chargers': 'LAC', 'chargers': 'LAC',
    'los angeles rams': 'LAR', 'rams': 'LAR',
    'miami dolphins': 'MIA', 'dolphins': 'MIA',
    'minnesota vikings': 'MIN', 'vikings': 'MIN',
    'new england patriots': 'NE', 'patriots': 'NE',
    'new orleans saints': 'NO', 'saints': 'NO',
    'new york giants': 'NYG', 'giants': 'NYG',
    'new york jets': 'NYJ', 'jets': 'NYJ',
    'philadelphia eagles': 'PHI', 'eagles': 'PHI',
    'pittsburgh steelers': 'PIT', 'steelers': 'PIT',
    'san francisco 49ers': 'SF', '49ers': 'SF',
    'seattle seahawks': 'SEA', 'seahawks': 'SEA',
    'tampa bay buccaneers': 'TB', 'buccaneers': 'TB',
    'tennessee titans': 'TEN', 'titans': 'TEN',
    'washington commanders': 'WAS', 'commanders': 'WAS',
}

# Cities that are shared by two franchises are left out
CITY_ABBREVIATIONS = {
    'arizona': 'ARI', 'atlanta': 'ATL', 'baltimore': 'BAL', 'buffalo': 'BUF',
    'carolina': 'CAR', 'chicago': 'CHI', 'cincinnati': 'CIN', 'cleveland': 'CLE',
    'dallas': 'DAL', 'denver': 'DEN', 'detroit': 'DET', 'green bay': 'GB',
    'houston': 'HOU', 'indianapolis': 'IND', 'jacksonville': 'JAX',
    'kansas city': 'KC', 'las vegas': 'LV', 'miami': 'MIA', 'minnesota': 'MIN',
    'new england': 'NE', 'new orleans': 'NO', 'philadelphia': 'PHI',
    'pittsburgh': 'PIT', 'san francisco': 'SF', 'seattle': 'SEA',
    'tampa bay': 'TB', 'tennessee': 'TEN', 'washington': 'WAS',
}

_TWO_WORD_CITY_PREFIXES = ('new', 'los')


def normalize_team_name(name: str) -> str:
    """Canonical identity for a team name; unknown names are lower-cased.

    Examples:
        "Kansas City Chiefs" -> "KC"
        "chiefs" -> "KC"
    """
    key = ' '.join((name or '').lower().split())
    if key in TEAM_ABBREVIATIONS:
        return TEAM_ABBREVIATIONS[key]
    if key in CITY_ABBREVIATIONS:
        return CITY_ABBREVIATIONS[key]
    if key.upper() in set(TEAM_ABBREVIATIONS.values()):
        return key.upper()
    return key


def _name_tokens(team: str):
    parts = team.lower().split()
    if not parts:
        return '', ''
    city = parts[0]
    if len(parts) >= 3 and parts[0] in _TWO_WORD_CITY_PREFIXES:
        city = f"{parts[0]} {parts[1]}"
    return city, parts[-1]


def extract_predicted_side(text: Optional[str], home_team: str, away_team: str) -> Optional[str]:
    """Which side of the game the text picks.

    Full team names are checked first, then city and nickname tokens longer
    than three characters. A text that names both or neither side is
    ambiguous.

    Returns:
        "home", "away", or None when the side cannot be identified
    """
    if not text or not home_team or not away_team:
        return None

    lowered = text.lower()
    home_lower = home_team.lower()
    away_lower = away_team.lower()

    mentions_home = home_lower in lowered
    mentions_away = away_lower in lowered
    if mentions_home != mentions_away:
        return 'home' if mentions_home else 'away'

    home_city, home_nickname = _name_tokens(home_team)
    away_city, away_nickname = _name_tokens(away_team)

    def mentioned(token: str) -> bool:
        return len(token) > 3 and token in lowered

    mentions_home = mentioned(home_city) or mentioned(home_nickname)
    mentions_away = mentioned(away_city) or mentioned(away_nickname)
    if mentions_home and not mentions_away:
        return 'home'
    if mentions_away and not mentions_home:
        return 'away'
    return None
