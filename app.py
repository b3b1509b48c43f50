import streamlit as st

from prm.config import get_config
from prm.views import dashboard, events, people, settings
from prm.views.sidebar import render_sidebar


# -------------------------------------------------------
# PAGE CONFIG
# -------------------------------------------------------
st.set_page_config(page_title="PRM", page_icon="🤝", layout="wide")
cfg = get_config()


# -------------------------------------------------------
# MULTI-USER SUPPORT
# -------------------------------------------------------
if "user_id" not in st.session_state:
    # signed-in email when the app runs with auth configured
    st.session_state.user_id = st.user.get("email") or "anonymous"


# -------------------------------------------------------
# SESSION STATE VARIABLES
# -------------------------------------------------------
if "selected_person_id" not in st.session_state:
    st.session_state.selected_person_id = None

if "selected_event_id" not in st.session_state:
    st.session_state.selected_event_id = None

if "flash" not in st.session_state:
    st.session_state.flash = None


# -------------------------------------------------------
# ROUTING
# -------------------------------------------------------
state = render_sidebar()

# messages queued before the last st.rerun()
if st.session_state.flash:
    st.success(st.session_state.flash)
    st.session_state.flash = None

if state.view == "dashboard":
    dashboard.render(cfg)
elif state.view == "people":
    people.render(cfg)
elif state.view == "events":
    events.render(cfg)
elif state.view == "settings":
    settings.render(cfg)
else:
    st.error("Unknown view")
