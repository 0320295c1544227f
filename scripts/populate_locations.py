"""
Populate countries, states and cities from the GeoNames dumps

Usage: python -m scripts.populate_locations [--data-dir DIR] [--limit N]
"""
import argparse
import logging
import os
import sys
import zipfile
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import psycopg2
import requests
from psycopg2.extras import execute_values
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

GEONAMES_URL = "https://download.geonames.org/export/dump"
FILES = {
    'countries': 'countryInfo.txt',
    'states': 'admin1CodesASCII.txt',
    'cities': 'cities1000.txt',
}
CITIES_ARCHIVE = 'cities1000.zip'
BATCH_SIZE = 1000


def _int_or_none(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _float_or_none(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def download_file(url: str, dest: str):
    """Download url to dest unless it already exists"""
    if os.path.exists(dest):
        logger.info(f"Using cached {dest}")
        return
    logger.info(f"Downloading {url}")
    with requests.get(url, stream=True, timeout=60) as r:
        r.raise_for_status()
        with open(dest, 'wb') as f:
            for chunk in r.iter_content(chunk_size=1 << 16):
                f.write(chunk)


def ensure_data_files(data_dir: str):
    os.makedirs(data_dir, exist_ok=True)
    download_file(f"{GEONAMES_URL}/{FILES['countries']}", os.path.join(data_dir, FILES['countries']))
    download_file(f"{GEONAMES_URL}/{FILES['states']}", os.path.join(data_dir, FILES['states']))

    cities_path = os.path.join(data_dir, FILES['cities'])
    if not os.path.exists(cities_path):
        archive = os.path.join(data_dir, CITIES_ARCHIVE)
        download_file(f"{GEONAMES_URL}/{CITIES_ARCHIVE}", archive)
        with zipfile.ZipFile(archive) as zf:
            zf.extract(FILES['cities'], data_dir)


def _rows(lines: Iterable[str]) -> Iterator[List[str]]:
    for line in lines:
        line = line.rstrip('\n')
        if line and not line.startswith('#'):
            yield line.split('\t')


def parse_countries(lines: Iterable[str]) -> List[Dict]:
    return [
        {
            'code': cols[0],
            'name': cols[4],
            'currency': cols[10] or None,
            'region': cols[8] or None,
            'population': _int_or_none(cols[7]),
        }
        for cols in _rows(lines) if len(cols) > 10
    ]


def parse_states(lines: Iterable[str]) -> List[Dict]:
    states = []
    for cols in _rows(lines):
        if len(cols) < 2 or '.' not in cols[0]:
            continue
        country_code, state_code = cols[0].split('.', 1)
        states.append({'country_code': country_code, 'code': state_code, 'name': cols[1]})
    return states


def parse_cities(lines: Iterable[str], limit: Optional[int] = None) -> Iterator[Dict]:
    for count, cols in enumerate(_rows(lines)):
        if limit is not None and count >= limit:
            return
        if len(cols) < 18:
            continue
        yield {
            'name': cols[1],
            'country_code': cols[8],
            'state_code': cols[10],
            'population': _int_or_none(cols[14]),
            'latitude': _float_or_none(cols[4]),
            'longitude': _float_or_none(cols[5]),
            'timezone': cols[17] or None,
        }


def build_id_maps(cursor) -> Tuple[Dict[str, int], Dict[str, int]]:
    """country code -> id and 'CC.STATE' -> state id"""
    cursor.execute("SELECT id, code FROM countries")
    country_map = {code: id_ for id_, code in cursor.fetchall()}
    codes_by_id = {id_: code for code, id_ in country_map.items()}

    cursor.execute("SELECT id, country_id, code FROM states")
    state_map = {}
    for id_, country_id, code in cursor.fetchall():
        country = codes_by_id.get(country_id)
        if country:
            state_map[f"{country}.{code}"] = id_
    return country_map, state_map


def upsert_countries(cursor, countries: List[Dict]) -> int:
    execute_values(
        cursor,
        """
        INSERT INTO countries (code, name, currency, region, population)
        VALUES %s
        ON CONFLICT (code) DO UPDATE SET
            name = EXCLUDED.name, currency = EXCLUDED.currency,
            region = EXCLUDED.region, population = EXCLUDED.population
        """,
        [(c['code'], c['name'], c['currency'], c['region'], c['population']) for c in countries],
        page_size=BATCH_SIZE
    )
    return len(countries)


def upsert_states(cursor, states: List[Dict], country_map: Dict[str, int]) -> int:
    rows = {}
    for s in states:
        country_id = country_map.get(s['country_code'])
        if country_id:
            rows[(country_id, s['name'])] = (country_id, s['name'], s['code'])
    execute_values(
        cursor,
        """
        INSERT INTO states (country_id, name, code)
        VALUES %s
        ON CONFLICT (country_id, name) DO UPDATE SET code = EXCLUDED.code
        """,
        list(rows.values()),
        page_size=BATCH_SIZE
    )
    return len(rows)


def _flush_cities(cursor, batch: Dict[Tuple[int, str], tuple]):
    execute_values(
        cursor,
        """
        INSERT INTO cities (state_id, name, population, latitude, longitude, timezone)
        VALUES %s
        ON CONFLICT (state_id, name) DO UPDATE SET
            population = EXCLUDED.population, latitude = EXCLUDED.latitude,
            longitude = EXCLUDED.longitude, timezone = EXCLUDED.timezone
        """,
        list(batch.values()),
        page_size=BATCH_SIZE
    )


def upsert_cities(cursor, cities: Iterable[Dict], state_map: Dict[str, int]) -> int:
    """Insert cities in batches; a name repeated inside a state keeps the larger population"""
    total = 0
    batch: Dict[Tuple[int, str], tuple] = {}
    for city in cities:
        state_id = state_map.get(f"{city['country_code']}.{city['state_code']}")
        if not state_id:
            continue
        key = (state_id, city['name'])
        previous = batch.get(key)
        if previous and (previous[2] or 0) >= (city['population'] or 0):
            continue
        batch[key] = (state_id, city['name'], city['population'],
                      city['latitude'], city['longitude'], city['timezone'])
        if len(batch) >= BATCH_SIZE:
            _flush_cities(cursor, batch)
            total += len(batch)
            batch = {}
    if batch:
        _flush_cities(cursor, batch)
        total += len(batch)
    return total


def connect():
    load_dotenv()
    required = ['DATABASE_HOST', 'DATABASE_NAME', 'DATABASE_USER', 'DATABASE_PASSWORD']
    missing = [var for var in required if not os.getenv(var)]
    if missing:
        raise RuntimeError(f"Missing environment variables: {', '.join(missing)}")
    return psycopg2.connect(
        host=os.getenv('DATABASE_HOST'),
        port=os.getenv('DATABASE_PORT', '5432'),
        database=os.getenv('DATABASE_NAME'),
        user=os.getenv('DATABASE_USER'),
        password=os.getenv('DATABASE_PASSWORD')
    )


def populate(data_dir: str, limit: Optional[int] = None):
    ensure_data_files(data_dir)
    conn = connect()
    try:
        with conn, conn.cursor() as cursor:
            with open(os.path.join(data_dir, FILES['countries']), encoding='utf-8') as f:
                logger.info(f"Countries: {upsert_countries(cursor, parse_countries(f))}")
            country_map, _ = build_id_maps(cursor)

            with open(os.path.join(data_dir, FILES['states']), encoding='utf-8') as f:
                logger.info(f"States: {upsert_states(cursor, parse_states(f), country_map)}")
            _, state_map = build_id_maps(cursor)

            with open(os.path.join(data_dir, FILES['cities']), encoding='utf-8') as f:
                logger.info(f"Cities: {upsert_cities(cursor, parse_cities(f, limit), state_map)}")
    finally:
        conn.close()
    logger.info("Location data population complete")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Load GeoNames locations into the database")
    parser.add_argument('--data-dir', default='geonames_data', help="download cache directory")
    parser.add_argument('--limit', type=int, default=None, help="maximum number of cities to read")
    args = parser.parse_args(argv)

    try:
        populate(args.data_dir, args.limit)
    except (requests.RequestException, psycopg2.Error, RuntimeError, OSError) as e:
        logger.error(f"Error populating locations: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
