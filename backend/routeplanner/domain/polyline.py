from __future__ import annotations

from typing import Iterable

from routeplanner.domain.delivery import Coordinate


def decode_polyline(encoded: str | None, precision: int = 5) -> list[Coordinate]:
    """
    Decode an encoded polyline into coordinates.

    Each point is stored as a latitude delta followed by a longitude delta from
    the previous point (starting at 0, 0), zig-zag signed and split into 5-bit
    chunks offset by 63. ``precision`` is 5 for OSRM and Google, 6 for Valhalla.
    """
    if not encoded:
        return []

    factor = 10**precision
    points: list[Coordinate] = []
    index = 0
    lat = 0
    lng = 0
    length = len(encoded)

    while index < length:
        delta_lat, index = _read_value(encoded, index)
        delta_lng, index = _read_value(encoded, index)
        lat += delta_lat
        lng += delta_lng
        points.append(Coordinate(lat / factor, lng / factor))

    return points


def encode_polyline(coordinates: Iterable[Coordinate], precision: int = 5) -> str:
    factor = 10**precision
    chunks: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for coordinate in coordinates:
        lat = round(coordinate.latitude * factor)
        lng = round(coordinate.longitude * factor)
        chunks.append(_write_value(lat - prev_lat))
        chunks.append(_write_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(chunks)


def _read_value(encoded: str, index: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise ValueError(f"Truncated polyline at offset {index}")
        byte = ord(encoded[index]) - 63
        index += 1
        result |= (byte & 0x1F) << shift
        shift += 5
        if byte < 0x20:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def _write_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    out: list[str] = []
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    out.append(chr(value + 63))
    return "".join(out)
