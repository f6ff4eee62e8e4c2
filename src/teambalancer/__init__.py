"""Split player rosters into balanced teams."""
