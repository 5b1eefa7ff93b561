# ======================================================
# FruitLens · Live Fruit Classification
# ======================================================

import os
import sys
import hashlib
from pathlib import Path

import streamlit as st

# ======================================================
# PATHS
# ======================================================
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from fruitlens.config import Settings, configure_logging
from fruitlens.capture import classify_upload, start_webcam, stop_webcam
from fruitlens.session import create_session, load_classifier


def _secret(name):
    try:
        return st.secrets.get(name)
    except FileNotFoundError:
        return None


# URL of the inference backend (optional). Env var first, then Streamlit secrets.
SETTINGS = Settings.from_env(
    backend_url=os.environ.get("FRUITLENS_BACKEND_URL") or _secret("FRUITLENS_BACKEND_URL")
)
configure_logging(SETTINGS.log_level)

# ======================================================
# STREAMLIT CONFIG
# ======================================================
st.set_page_config(page_title="FruitLens", page_icon="🍎", layout="centered")


# ======================================================
# HELPERS
# ======================================================
def file_hash(uploaded_file):
    return hashlib.md5(uploaded_file.getvalue()).hexdigest()


@st.cache_resource(show_spinner="Loading AI model...")
def get_classifier(settings):
    return load_classifier(settings)


def render_notice(session):
    notice = session.notice
    if notice is None:
        return
    show = {"error": st.error, "warning": st.warning}.get(notice.level, st.info)
    show(notice.message)
    session.clear_notice()


def render_prediction(prediction):
    st.subheader("🎯 Result")
    st.markdown(f"### {prediction.label}")
    st.write(f"Confidence: {prediction.confidence_text}")
    st.progress(min(max(prediction.confidence / 100, 0.0), 1.0))


# ======================================================
# SESSION
# ======================================================
if "fruitlens" not in st.session_state:
    st.session_state.fruitlens = create_session(SETTINGS, load=get_classifier)
    st.session_state.last_image_hash = None

session = st.session_state.fruitlens
refresh = SETTINGS.sample_interval if session.webcam.active else None

# ======================================================
# HEADER
# ======================================================
st.title("🍎 FruitLens")
if session.ready and session.classifier.labels:
    st.caption("Identifies " + ", ".join(session.classifier.labels))
else:
    st.caption("Live fruit classification from your webcam or an uploaded photo")

if not session.ready:
    render_notice(session)
    st.error("The model is unavailable. Reload the page once the model files are in place.")
    st.stop()

# ======================================================
# WEBCAM
# ======================================================
st.subheader("📹 Webcam")

if session.webcam.active:
    st.button("Stop webcam", type="secondary", on_click=stop_webcam, args=(session,))
else:
    st.button("Start webcam", type="primary", on_click=start_webcam, args=(session, SETTINGS))


@st.fragment(run_every=refresh)
def live_view():
    # Sampler notices arrive between full reruns.
    render_notice(session)
    frame = session.webcam.frame
    if session.webcam.active and frame is not None:
        st.image(frame, caption="Live", width="content")
    elif session.webcam.active:
        st.info("Waiting for the first frame...")
    else:
        st.info("Webcam is off")


live_view()

# ======================================================
# IMAGE UPLOAD
# ======================================================
st.subheader("📁 Upload an image")
uploaded_file = st.file_uploader("Select an image", type=["jpg", "jpeg", "png"])

if uploaded_file:
    img_hash = file_hash(uploaded_file)
    if st.session_state.last_image_hash != img_hash:
        st.session_state.last_image_hash = img_hash
        with st.spinner("Classifying..."):
            classify_upload(session, uploaded_file.getvalue())
        render_notice(session)

    if session.preview is not None:
        st.image(session.preview, caption="Uploaded image", width="content")


# ======================================================
# PREDICTION
# ======================================================
@st.fragment(run_every=refresh)
def result_card():
    prediction = session.prediction
    if prediction is not None:
        render_prediction(prediction)


result_card()
