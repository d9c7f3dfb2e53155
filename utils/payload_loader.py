# utils/payload_loader.py - shared logger + TSV loader that yields client update rows
import csv
import json
import logging
import os


def get_logger(name: str = "lundimatin"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    return logger


logger = get_logger("payload-loader")


def load_updates_from_csv(csv_path):
    """
    Read a tab-separated file of client updates.

    Each row needs a client id (``client_id`` or ``id_client``) and an
    ``attributes`` column holding a JSON object. Rows whose attributes do not
    parse to an object keep ``attributes`` as None so the runner can report
    them instead of dropping them.
    """
    rows = []
    with open(csv_path, newline='', encoding='utf-8') as fh:
        reader = csv.DictReader(fh, delimiter='\t')
        for idx, r in enumerate(reader, start=1):
            raw = r.get('attributes') or r.get('Attributes') or ''
            parsed = None
            if raw.strip():
                try:
                    parsed = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.warning("Row %d: attributes are not valid JSON (%s)", idx, e)
                if parsed is not None and not isinstance(parsed, dict):
                    logger.warning("Row %d: attributes must be a JSON object", idx)
                    parsed = None
            rows.append({
                'TestCaseID': (r.get('ID') or r.get('TestCaseID') or '').strip() or f"row-{idx}",
                'client_id': (r.get('client_id') or r.get('id_client') or '').strip(),
                'row': r,
                'attributes': parsed,
            })
    return rows
