import logging

import streamlit as st

from src.config import settings
from src.ui.layout import render_dashboard

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)


def main() -> None:
    st.set_page_config(
        page_title="Event Forecast & Scenario Dashboard",
        layout="wide",
    )
    render_dashboard()


if __name__ == "__main__":
    main()
