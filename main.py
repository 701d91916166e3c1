import streamlit as st
import logging
import pandas as pd

from backend.agents.reminder_agent import reminder_agent
from backend.database.settings_db import settings_db
from backend.models.reminder import REMINDER_THRESHOLDS
from backend.scheduler import ReminderScheduler
from backend.services.export_service import upcoming_reminders_frame
from backend.services.settings_service import API_KEY_SETTING, DEVICE_ID_SETTING, parse_toggle
from backend.utils.config import config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

@st.cache_resource
def get_scheduler() -> ReminderScheduler:
    """One scheduler per Streamlit server process"""
    scheduler = ReminderScheduler(agent=reminder_agent)
    scheduler.start()
    return scheduler

def initialize_app():
    """Initialize the Streamlit app"""
    st.set_page_config(
        page_title="Clinic SMS Reminders",
        page_icon="🦷",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    if not config.validate_config():
        st.error("⚠️ Invalid reminder configuration. Please check your .env file.")
        st.stop()

def display_header():
    st.title("🦷 Appointment SMS Reminders")
    st.markdown("""
    Reminders go out **24h**, **2h** and **1h** before each scheduled appointment,
    once per appointment and lead time.
    """)

def display_sidebar(scheduler: ReminderScheduler):
    """Display sidebar with scheduler status"""
    with st.sidebar:
        st.header("🔧 Scheduler Status")
        status = scheduler.status()

        if status["initialized"]:
            st.success(f"✅ Running every {status['interval_minutes']} min")
        else:
            st.error("❌ Not initialized")

        st.write(f"• Processing now: {'yes' if status['is_processing'] else 'no'}")
        st.write(f"• Skipped ticks: {status['skipped_ticks']}")
        st.write(f"• Last run: {status['last_finished_at'] or '—'}")
        st.write(f"• Clinic offset: UTC{config.CLINIC_UTC_OFFSET}")

def display_run_panel(scheduler: ReminderScheduler):
    st.subheader("Run a reminder cycle now")
    if st.button("Run cycle"):
        with st.spinner("Processing reminders..."):
            summary = scheduler.run_cycle()

        if summary.skipped:
            st.warning(f"Skipped: {summary.skipped_reason}")
        elif summary.error:
            st.error(f"Cycle failed: {summary.error}")
        else:
            st.success(f"Processed {summary.processed_count}, sent {summary.sent_count}")

        if summary.results:
            st.dataframe(pd.DataFrame([r.model_dump() for r in summary.results]))
        for name, error in summary.threshold_errors.items():
            st.error(f"{name}: {error}")

    st.subheader("Send a reminder immediately")
    appointment_id = st.text_input("Appointment ID")
    if st.button("Send SMS") and appointment_id:
        result = reminder_agent.send_immediate(appointment_id.strip())
        if result["success"]:
            st.success(result["message"])
        else:
            st.error(result["error"])

def display_upcoming():
    st.subheader("Upcoming reminders (next 48 hours)")
    upcoming = reminder_agent.get_upcoming_reminders()
    if upcoming:
        st.dataframe(upcoming_reminders_frame(upcoming))
    else:
        st.info("No reminders pending.")

def display_settings():
    st.subheader("Reminder settings")

    for threshold in REMINDER_THRESHOLDS:
        with st.expander(f"{threshold.name} reminder"):
            enabled = st.checkbox(
                "Enabled",
                value=parse_toggle(settings_db.get_setting(threshold.enabled_key)),
                key=threshold.enabled_key,
            )
            template = st.text_area(
                "Template ({patient_name}, {appointment_date}, {appointment_time})",
                value=settings_db.get_setting(threshold.template_key) or "",
                key=threshold.template_key,
            )
            if st.button("Save", key=f"save_{threshold.name}"):
                settings_db.set_setting(threshold.enabled_key, "true" if enabled else "false")
                settings_db.set_setting(threshold.template_key, template)
                st.success("Saved")

    with st.expander("TextBee gateway"):
        api_key = st.text_input("API key", value=settings_db.get_setting(API_KEY_SETTING) or "", type="password")
        device_id = st.text_input("Device ID", value=settings_db.get_setting(DEVICE_ID_SETTING) or "")
        if st.button("Save credentials"):
            settings_db.set_setting(API_KEY_SETTING, api_key.strip(), "TextBee API Key")
            settings_db.set_setting(DEVICE_ID_SETTING, device_id.strip(), "TextBee Device ID")
            st.success("Saved")

def main():
    """Main application function"""
    initialize_app()
    scheduler = get_scheduler()

    display_header()
    display_sidebar(scheduler)

    run_tab, upcoming_tab, settings_tab = st.tabs(["▶️ Run", "📅 Upcoming", "⚙️ Settings"])

    with run_tab:
        display_run_panel(scheduler)

    with upcoming_tab:
        display_upcoming()

    with settings_tab:
        display_settings()

if __name__ == "__main__":
    main()
