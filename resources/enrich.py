# resources/enrich.py
from flask import request
from flask_restful import Resource
from pydantic import ValidationError

from models.schemas import EnrichRequest
from services.pii import sanitize_pii
from services.limits import per_minute
from .utils import error, validation_message


class EnrichResource(Resource):
    decorators = [per_minute("ENRICH_RATE_LIMIT", "Too many AI enrichment requests, please try again later.")]

    def __init__(self, classifier):
        self.classifier = classifier

    def post(self):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error("JSON object body required")
        try:
            req = EnrichRequest.model_validate(data)
        except ValidationError as e:
            return error(validation_message(e))

        enrichment = self.classifier.enrich(req.description, req.address)

        body = enrichment.result.model_dump()
        body["mode"] = enrichment.mode
        if enrichment.notice:
            body["notice"] = enrichment.notice
        return body, 200


class TranscribeResource(Resource):
    decorators = [per_minute("TRANSCRIBE_RATE_LIMIT", "Too many transcription requests, please try again later.")]

    def __init__(self, transcriber):
        self.transcriber = transcriber

    def post(self):
        upload = request.files.get("file")
        if upload is None:
            return error("No audio file provided")
        if not (upload.mimetype or "").startswith("audio/"):
            return error("Invalid audio format. Please use webm, wav, mp3, or ogg.")

        data = upload.read()
        return self.transcriber.transcribe(upload.filename or "audio.webm", data, upload.mimetype), 200


class SanitizeResource(Resource):
    def post(self):
        data = request.get_json(silent=True) or {}
        text = data.get("text") if isinstance(data, dict) else None
        if not text or not isinstance(text, str):
            return error("Text is required")
        return {"sanitized": sanitize_pii(text)}, 200
