from databases import Database

from duellog.config import config

database = Database(config.pg_dsn)
