import html
import logging
import re
from pathlib import Path
from typing import Any, Iterable

from lxml import etree

from quakekml.errors import PersistError
from quakekml.models import Event
from quakekml.utils.format import NOT_AVAILABLE, fmt_list, fmt_value

log = logging.getLogger("render")

KML_NS = "http://www.opengis.net/kml/2.2"
DEFAULT_DOCUMENT_NAME = "Earthquake Data"

ICON_HREF = "https://maps.google.com/mapfiles/kml/shapes/earthquake.png"
ICON_COLOR = "ff0000ff"  # aabbggrr, red
ICON_SCALE = "1.2"

# Characters XML 1.0 cannot carry, not even escaped
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

def xml_safe(text: str) -> str:
    return _XML_ILLEGAL.sub("", text)

def _k(tag: str) -> str:
    return f"{{{KML_NS}}}{tag}"

def _sub(parent, tag: str, text: str | None = None):
    el = etree.SubElement(parent, _k(tag))
    if text is not None:
        el.text = xml_safe(text)
    return el

def closest_cities(props: dict[str, Any]) -> str:
    cities = props.get("closestCities") or []
    names = [c.get("name") for c in cities if isinstance(c, dict)]
    if any(names):
        return fmt_list(names)
    city = props.get("closestCity")
    if isinstance(city, dict):
        return fmt_value(city.get("name"))
    return NOT_AVAILABLE

def nearby_airports(props: dict[str, Any]) -> str:
    out = []
    for a in props.get("airports") or []:
        if not isinstance(a, dict) or not a.get("name"):
            continue
        code = a.get("code")
        out.append(f"{a['name']} ({code})" if code else str(a["name"]))
    return fmt_list(out)

def describe(e: Event) -> str:
    depth = f"{e.depth} km" if e.depth is not None else NOT_AVAILABLE
    rows = [
        ("Provider", fmt_value(e.provider)),
        ("Date", fmt_value(e.timestamp_raw)),
        ("Magnitude", fmt_value(e.magnitude)),
        ("Depth", depth),
        ("Closest Cities", closest_cities(e.location_properties)),
        ("Nearby Airports", nearby_airports(e.location_properties)),
    ]
    # Escaping also keeps "]]>" out of the CDATA section
    return "<br/>".join(f"<b>{label}:</b> {html.escape(value)}" for label, value in rows)

def _placemark(parent, e: Event) -> None:
    pm = _sub(parent, "Placemark")
    _sub(pm, "name", fmt_value(e.title))
    desc = _sub(pm, "description")
    desc.text = etree.CDATA(xml_safe(describe(e)))

    style = _sub(pm, "Style")
    icon_style = _sub(style, "IconStyle")
    _sub(icon_style, "color", ICON_COLOR)
    _sub(icon_style, "scale", ICON_SCALE)
    icon = _sub(icon_style, "Icon")
    _sub(icon, "href", ICON_HREF)

    if e.coordinates is None:
        log.debug("Event %r has no coordinates; placemark has no Point", e.id)
        return
    lon, lat = e.coordinates
    point = _sub(pm, "Point")
    _sub(point, "coordinates", f"{lon},{lat},0")

def render_kml(events: Iterable[Event], *, document_name: str = DEFAULT_DOCUMENT_NAME) -> bytes:
    root = etree.Element(_k("kml"), nsmap={None: KML_NS})
    doc = _sub(root, "Document")
    _sub(doc, "name", document_name)
    for e in events:
        _placemark(doc, e)
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)

def write_kml(path: Path | str, events: Iterable[Event], *, document_name: str = DEFAULT_DOCUMENT_NAME) -> int:
    events = list(events)
    data = render_kml(events, document_name=document_name)

    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError as ex:
        raise PersistError(f"Failed to write KML to {path}: {ex}") from ex

    log.info("KML with %d placemarks saved to %s", len(events), path)
    return len(events)
