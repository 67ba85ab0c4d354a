"""
Test Configuration and Fixtures
"""
import io
import json
import os
import re
import zipfile
from types import SimpleNamespace

import PyPDF2
import docx
import pytest
import reportlab
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from smartquiz import create_app
from smartquiz.store import MemoryQuizStore

PPTX_MIME = 'application/vnd.openxmlformats-officedocument.presentationml.presentation'
DOCX_MIME = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'
PDF_MIME = 'application/pdf'

# TrueType fonts bundled with reportlab
VERA_TTF = os.path.join(os.path.dirname(reportlab.__file__), 'fonts', 'Vera.ttf')
VERA_BOLD_TTF = os.path.join(os.path.dirname(reportlab.__file__), 'fonts', 'VeraBd.ttf')

OPTIONS = ["Paris", "London", "Rome", "Berlin"]


def make_questions(count, answer="London"):
    return [
        {
            "question": f"Question {i + 1}: which city?",
            "options": list(OPTIONS),
            "answer": answer,
        }
        for i in range(count)
    ]


class FakeCompletions:
    """Stands in for client.chat.completions; records every call."""

    def __init__(self, responder):
        self.responder = responder
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        payload = self.responder(kwargs)
        if isinstance(payload, Exception):
            raise payload
        content = payload if isinstance(payload, str) else json.dumps(payload)
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, responder):
        self.chat = SimpleNamespace(completions=FakeCompletions(responder))

    @property
    def calls(self):
        return self.chat.completions.calls


def requested_count(kwargs):
    prompt = kwargs["messages"][-1]["content"]
    return int(re.search(r"Generate exactly (\d+) questions", prompt).group(1))


def echo_count_responder(kwargs):
    return {"questions": make_questions(requested_count(kwargs))}


@pytest.fixture
def fake_openai():
    """Fake client that answers with as many questions as the prompt asks for"""
    return FakeOpenAI(echo_count_responder)


@pytest.fixture
def store():
    return MemoryQuizStore()


@pytest.fixture
def app(store, fake_openai, tmp_path):
    """Create application for testing"""
    app = create_app('testing', store=store, openai_client=fake_openai)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    yield app


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def upload_dir(app):
    return app.config['UPLOAD_FOLDER']


def docx_bytes(*paragraphs):
    document = docx.Document()
    for p in paragraphs:
        document.add_paragraph(p)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def pdf_bytes(*lines):
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 720
    for line in lines:
        c.drawString(72, y, line)
        y -= 18
    c.save()
    return buf.getvalue()


def pptx_bytes(*slides):
    """Minimal deck: one slide XML member per entry, each run in <a:t>"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', zipfile.ZIP_DEFLATED) as pkg:
        pkg.writestr('[Content_Types].xml', '<?xml version="1.0"?><Types/>')
        for i, runs in enumerate(slides, start=1):
            body = "".join(f'<a:r><a:rPr lang="en-US"/><a:t>{run}</a:t></a:r>' for run in runs)
            pkg.writestr(
                f'ppt/slides/slide{i}.xml',
                f'<?xml version="1.0"?><p:sld><p:txBody><a:p>{body}</a:p></p:txBody></p:sld>',
            )
    return buf.getvalue()


def pdf_base_fonts(pdf):
    """BaseFont names referenced from every page of a PDF"""
    reader = PyPDF2.PdfReader(io.BytesIO(pdf))
    names = set()
    for page in reader.pages:
        for ref in page["/Resources"]["/Font"].values():
            names.add(str(ref.get_object()["/BaseFont"]))
    return names
