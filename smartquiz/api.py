"""
API Blueprint

- Upload a document and generate a quiz from it
- Save, list, fetch and delete quizzes through the configured QuizStore
- Export a quiz as a PDF
"""
import io
from datetime import datetime, timezone
from typing import Any

from flask import Blueprint, jsonify, request, send_file, current_app
from werkzeug.exceptions import RequestEntityTooLarge

from smartquiz.errors import InvalidQuestionShape, InvalidRequest, NotFound, QuizError, UnsupportedFormat
from smartquiz.models import NewQuiz, questions_from_list
from smartquiz.services.document_parser import (
    ALLOWED_MIMES,
    extract_text_from_path,
    file_stem,
    uploaded_document,
    validate_document_file,
)
from smartquiz.services.openai_service import MAX_QUESTIONS, MIN_QUESTIONS, generate_quiz, get_client
from smartquiz.services.pdf_service import render_quiz_pdf
from smartquiz.store import QuizStore

api_bp = Blueprint('api', __name__)


# ============ Helper Functions ============

def get_store() -> QuizStore:
    return current_app.extensions['quiz_store']


def get_openai_client():
    client = current_app.extensions.get('openai_client')
    if client is not None:
        return client
    return get_client(
        api_key=current_app.config.get('OPENAI_API_KEY'),
        timeout=current_app.config.get('OPENAI_TIMEOUT', 60),
    )


def parse_question_count(raw: Any) -> int:
    """Requested count, or the default when it is missing, unparsable or out of range."""
    default = current_app.config['DEFAULT_QUESTION_COUNT']
    if raw is None:
        return default
    try:
        count = int(str(raw).strip())
    except ValueError:
        return default
    if not MIN_QUESTIONS <= count <= MAX_QUESTIONS:
        return default
    return count


def pdf_fonts() -> dict:
    return {
        "font_path": current_app.config.get('PDF_FONT_PATH') or None,
        "bold_font_path": current_app.config.get('PDF_BOLD_FONT_PATH') or None,
    }


def pdf_response(pdf: bytes, title: str):
    return send_file(
        io.BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"{title}.pdf",
    )


# ============ Error Handlers ============

@api_bp.errorhandler(QuizError)
def handle_quiz_error(e: QuizError):
    current_app.logger.warning(f"{type(e).__name__}: {e.message}")
    return jsonify({"ok": False, "error": e.message}), e.status_code


@api_bp.app_errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    limit_mb = (current_app.config.get('MAX_CONTENT_LENGTH') or 0) // (1024 * 1024)
    return jsonify({"ok": False, "error": f"File too large. Maximum size is {limit_mb}MB"}), 413


# ============ API Routes ============

@api_bp.route("/api/generate-quiz", methods=["POST"])
def generate_quiz_from_upload():
    file = request.files.get("document")
    if not file or not file.filename:
        raise InvalidRequest("No file uploaded")

    filename = file.filename
    if file.mimetype not in ALLOWED_MIMES:
        raise UnsupportedFormat("Only .pptx, .docx, and .pdf files are allowed")
    if not validate_document_file(filename):
        raise UnsupportedFormat()

    question_count = parse_question_count(request.form.get("questionCount"))
    title = file_stem(filename)

    with uploaded_document(file.stream, filename, upload_dir=current_app.config.get('UPLOAD_FOLDER')) as path:
        text = extract_text_from_path(path, filename, slide_fallback=current_app.config['FEATURE_SLIDE_FALLBACK'])
        questions = generate_quiz(
            text,
            title,
            question_count,
            client=get_openai_client(),
            model=current_app.config.get('OPENAI_MODEL'),
            strict_answers=current_app.config['FEATURE_STRICT_ANSWERS'],
        )

    current_app.logger.info(f"Generated {len(questions)} questions from {filename}")
    return jsonify({
        "title": title,
        "sourceFile": filename,
        "questions": [q.to_dict() for q in questions],
        "questionCount": len(questions),
    }), 200


@api_bp.route("/api/save-quiz", methods=["POST"])
def save_quiz():
    new_quiz = NewQuiz.from_dict(request.get_json(silent=True))
    quiz = get_store().create(new_quiz)
    current_app.logger.info(f"Saved quiz {quiz.id} for user {quiz.user_id}")
    return jsonify(quiz.to_dict()), 200


@api_bp.route("/api/my-quizzes", methods=["GET"])
def my_quizzes():
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        raise InvalidRequest("User ID is required")
    quizzes = get_store().list_by_user(user_id)
    return jsonify([q.to_dict() for q in quizzes]), 200


@api_bp.route("/api/quiz/<quiz_id>", methods=["GET"])
def get_quiz(quiz_id):
    return jsonify(get_store().require(quiz_id).to_dict()), 200


@api_bp.route("/api/quiz/<quiz_id>", methods=["DELETE"])
def delete_quiz(quiz_id):
    if not get_store().delete(quiz_id):
        raise NotFound()
    current_app.logger.info(f"Deleted quiz {quiz_id}")
    return jsonify({"ok": True, "message": "Quiz deleted successfully"}), 200


@api_bp.route("/api/download-pdf", methods=["POST"])
def download_pdf():
    payload = request.get_json(silent=True) or {}
    title = payload.get("title")
    raw_questions = payload.get("questions")
    if not title or not isinstance(title, str) or not isinstance(raw_questions, list):
        raise InvalidRequest("Invalid quiz data")
    try:
        questions = questions_from_list(raw_questions)
    except InvalidQuestionShape as e:
        raise InvalidRequest(f"Invalid quiz data: {e.message}")

    pdf = render_quiz_pdf(
        title,
        payload.get("sourceFile") or "Unknown",
        questions,
        datetime.now(timezone.utc),
        **pdf_fonts(),
    )
    return pdf_response(pdf, title)


@api_bp.route("/api/quiz/<quiz_id>/pdf", methods=["GET"])
def download_saved_quiz_pdf(quiz_id):
    quiz = get_store().require(quiz_id)
    pdf = render_quiz_pdf(quiz.title, quiz.source_file, quiz.questions, quiz.created_at, **pdf_fonts())
    return pdf_response(pdf, quiz.title)
