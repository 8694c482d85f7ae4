import os
import jinja2

from logic.statistics import format_property_type
from utils.date_utils import parse_datetime

template_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'templates')


def format_currency(value, symbol: str = '$') -> str:
    try:
        return f"{symbol}{float(value or 0):,.0f}"
    except (TypeError, ValueError):
        return f"{symbol}0"


def format_date(value, fmt: str = '%b %d, %Y') -> str:
    parsed = parse_datetime(value)
    return parsed.strftime(fmt) if parsed else 'N/A'


def humanize(value) -> str:
    """'in_progress' -> 'In Progress'."""
    return str(value or '').replace('_', ' ').title()


template_loader = jinja2.FileSystemLoader(searchpath=template_dir)
template_env = jinja2.Environment(loader=template_loader, autoescape=jinja2.select_autoescape(['html']))
template_env.filters['currency'] = format_currency
template_env.filters['date'] = format_date
template_env.filters['humanize'] = humanize
template_env.filters['property_type'] = format_property_type
