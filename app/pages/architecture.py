import streamlit as st

st.set_page_config(page_title="Architecture · FruitLens", layout="centered")

st.title("🏗️ Architecture Overview")
st.caption("How a webcam frame or an uploaded photo becomes a prediction")

st.divider()

st.subheader("🔄 Pipeline")

st.markdown(
    """
    ```text
      Model Loader (once, at startup)
                │
                ▼
     ┌──────────┴───────────┐
     ▼                      ▼
    Webcam sampler      File upload
    (every second)      (one shot)
     │                      │
     └──────────┬───────────┘
                ▼
        Image Preprocessing
    (resize, rescale to [0,1], batch)
                │
                ▼
          CNN Prediction
     (top class + confidence %)
                │
                ▼
         Result card (latest only)
    ```
    """
)

st.divider()

st.subheader("🧩 Component Breakdown")

with st.expander("1️⃣ Model Loader", expanded=True):
    st.markdown(
        """
        - Loads a Keras model from disk or over HTTP, once per server process
        - Reads class names from `model_metadata.json` when present
        - A failed load disables the app until the page is reloaded; there is no retry
        """
    )

with st.expander("2️⃣ Image Preprocessing", expanded=False):
    st.markdown(
        """
        - Converts camera frames (BGR) and uploads (any PIL mode) to RGB
        - Resizes to the square the model expects (128×128 by default)
        - Rescales pixels from [0, 255] to [0, 1] and adds a batch dimension
        """
    )

with st.expander("3️⃣ CNN Prediction", expanded=False):
    st.markdown(
        """
        - One forward pass per image, buffers dropped right after
        - Picks the most probable class; ties go to the first class
        - Runs locally, or on the FastAPI backend when `FRUITLENS_BACKEND_URL` is set
        """
    )

with st.expander("4️⃣ Webcam Sampler", expanded=False):
    st.markdown(
        """
        - Opens the camera at 640×480 and samples one frame per interval
        - A single cancellable loop per session; starting twice does nothing
        - Stopping halts the loop, releases the camera and clears the result
        """
    )

st.divider()

st.caption("© FruitLens · Architecture")
st.markdown("Made with ❤️ using Streamlit")
