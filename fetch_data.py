import os
import sys
import time

import requests

from modelvis.constants import DATA_FILES, DATASET_URLS
from modelvis.data_loader import DATA_DIR

# Rdatasets mirrors the ggplot2 example data as plain CSV (free, no key needed).
# Each file carries an extra leading "rownames" column; data_loader drops it.


def fetch_dataset(name, url, out_dir):
    """Download one CSV and write it to ``out_dir``; return the row count."""
    print(f"  Fetching {name} from {url}...")
    resp = requests.get(url, timeout=120)
    resp.raise_for_status()

    out_path = os.path.join(out_dir, DATA_FILES[name])
    with open(out_path, "wb") as f:
        f.write(resp.content)
    rows = resp.content.count(b"\n") - 1
    print(f"  -> {rows:,} rows written to {out_path}")
    return rows


def main(names=None):
    names = names or list(DATASET_URLS)
    unknown = [n for n in names if n not in DATASET_URLS]
    if unknown:
        raise SystemExit(f"Unknown dataset(s): {', '.join(unknown)}. Choose from {', '.join(DATASET_URLS)}")

    os.makedirs(DATA_DIR, exist_ok=True)
    for name in names:
        print(f"\n[{name}]")
        fetch_dataset(name, DATASET_URLS[name], DATA_DIR)
        time.sleep(1)  # be polite to the mirror

    print(f"\nDone! Data is in {DATA_DIR}")


if __name__ == "__main__":
    main(sys.argv[1:])
