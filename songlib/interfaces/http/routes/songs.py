"""Song CRUD, listing and verse endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from songlib.domain.errors import (
    InvalidID,
    InvalidPagination,
    InvalidPayload,
    SongLibError,
)
from songlib.models.dto import AddSongPayload, SongPatch


logger = logging.getLogger(__name__)

songs_bp = Blueprint('songs_bp', __name__)


def get_song_service():
    return current_app.extensions['song_service']


def _parse_id(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidID() from exc


def _int_arg(name: str, default: int) -> int:
    raw: Optional[str] = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidPagination(f"{name} must be an integer") from exc


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidPayload("request body must be a JSON object")
    return payload


@songs_bp.errorhandler(SongLibError)
def _handle_domain_error(exc: SongLibError):
    return jsonify(exc.to_dict()), exc.status_code


@songs_bp.errorhandler(Exception)
def _handle_unexpected_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({'error': 'internal_error', 'message': 'Internal server error'}), 500


@songs_bp.route('/add-song', methods=['POST'])
def add_song():
    try:
        payload = AddSongPayload.model_validate(_json_body())
    except ValidationError as exc:
        raise InvalidPayload(str(exc)) from exc

    song = get_song_service().add_song(payload.group, payload.song)
    return jsonify({'data': song.to_dict()}), 201


@songs_bp.route('/songs/<song_id>', methods=['GET'])
def get_song(song_id: str):
    song = get_song_service().get_song_by_id(_parse_id(song_id))
    return jsonify({'data': song.to_dict()}), 200


@songs_bp.route('/update-song/<song_id>', methods=['PUT'])
def update_song(song_id: str):
    parsed_id = _parse_id(song_id)
    try:
        patch = SongPatch.model_validate(_json_body())
    except ValidationError as exc:
        raise InvalidPayload(str(exc)) from exc

    song = get_song_service().update_song(parsed_id, patch)
    return jsonify({'data': song.to_dict()}), 200


@songs_bp.route('/delete-song/<song_id>', methods=['DELETE'])
def delete_song(song_id: str):
    parsed_id = _parse_id(song_id)
    get_song_service().delete_song(parsed_id)
    return jsonify({'message': f'song {parsed_id} deleted'}), 200


@songs_bp.route('/songs', methods=['GET'])
def list_songs():
    service = get_song_service()
    page = _int_arg('page', 1)
    page_size = _int_arg('pageSize', service.settings.default_page_size)
    # Everything except the pagination controls is an equality filter
    filters = request.args.to_dict(flat=True)

    songs = service.get_songs_with_filters_and_pagination(filters, page, page_size)
    return jsonify({'songs': [song.to_dict() for song in songs]}), 200


@songs_bp.route('/songs/<song_id>/verses', methods=['GET'])
def list_song_verses(song_id: str):
    service = get_song_service()
    parsed_id = _parse_id(song_id)
    page = _int_arg('page', 1)
    page_size = _int_arg('pageSize', service.settings.default_page_size)

    verses = service.get_song_verses_with_pagination(parsed_id, page, page_size)
    return jsonify({'verses': verses}), 200


__all__ = ['songs_bp']
