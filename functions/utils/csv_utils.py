import csv
import io
import logging

log = logging.getLogger(__name__)


def normalize_header(header: str) -> str:
    """Lower-cases a CSV header and drops spaces, underscores and quotes."""
    return header.strip().strip('"').lower().replace(' ', '').replace('_', '')


def records_to_csv(records: list, columns: list) -> str:
    """
    Writes records as RFC 4180 CSV: a header row plus one row per record.
    `columns` is a list of (header, field) pairs. Returns '' when there are no records.
    """
    if not records:
        return ''

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow([header for header, _ in columns])
    for record in records:
        writer.writerow(['' if record.get(field) is None else record.get(field) for _, field in columns])
    return output.getvalue().rstrip('\n')


def csv_to_rows(content: str, columns: list) -> list:
    """
    Parses CSV text into dicts keyed by record field name.
    Headers are matched against `columns` after normalization; unknown headers
    are kept under their normalized name. Blank lines are ignored.
    """
    field_by_header = {normalize_header(header): field for header, field in columns}
    field_by_header.update({normalize_header(field): field for _, field in columns})

    reader = csv.reader(io.StringIO(content.lstrip('\ufeff').strip()))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return []

    headers = [normalize_header(h) for h in rows[0]]
    parsed = []
    for line_number, values in enumerate(rows[1:], start=2):
        if len(values) != len(headers):
            log.warning(f"CSV line {line_number} has {len(values)} values for {len(headers)} headers.")
        row = {}
        for index, header in enumerate(headers):
            value = values[index].strip() if index < len(values) else ''
            row[field_by_header.get(header, header)] = value
        parsed.append(row)
    return parsed


def to_float(value, default=None):
    if value is None or value == '':
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(',', '').replace('$', '').replace('%', '').strip())
    except ValueError:
        return default


def to_int(value, default=None):
    number = to_float(value)
    return int(number) if number is not None else default


def to_number(value, default=None):
    """Returns an int when the value is integral, otherwise a float."""
    number = to_float(value)
    if number is None:
        return default
    return int(number) if number.is_integer() else number
