import streamlit as st
import pandas as pd

from salon.core.config import settings
from salon.core.exceptions import AppException
from salon.database import SessionLocal, init_db
from salon.services.booking_service import business_today
from salon.services.timeline_service import day_timeline, delete_appointment

# Page Config
st.set_page_config(
    page_title=f"{settings.BUSINESS_NAME} Admin",
    page_icon="📅",
    layout="wide"
)

# Header
st.title(f"{settings.BUSINESS_NAME} - Timeline")

init_db()


def load_timeline(day):
    db = SessionLocal()
    try:
        return day_timeline(db, day)
    finally:
        db.close()


def timeline_frame(timeline) -> pd.DataFrame:
    rows = []
    for employee in timeline["employees"]:
        for appointment in employee["appointments"]:
            rows.append({
                "id": appointment["id"],
                "employee": employee["first_name"],
                "start": appointment["start_time"],
                "finish": appointment["finish_time"],
                "treatment": appointment["treatment"]["name"],
                "client": appointment["client"]["name"],
                "email": appointment["client"]["email"],
                "status": appointment["status"],
            })
    return pd.DataFrame(rows, columns=["id", "employee", "start", "finish", "treatment", "client", "email", "status"])


selected_day = st.date_input("Date", value=business_today())

if st.button("Refresh"):
    st.rerun()

timeline = load_timeline(selected_day)
df = timeline_frame(timeline)

hours = timeline["openingHours"]
if hours:
    st.caption(f"Open {hours['open']} - {hours['close']}")
else:
    st.caption("Closed")

if not df.empty:
    col1, col2 = st.columns(2)
    col1.metric("Appointments", len(df))
    col2.metric("Awaiting confirmation", int((df["status"] == "WAITING_FOR_CONFIRMATION").sum()))

    for employee, group in df.groupby("employee", sort=False):
        st.subheader(employee)
        st.dataframe(
            group.drop(columns=["employee"]),
            use_container_width=True,
            hide_index=True,
        )

    st.subheader("Remove appointment")
    to_delete = st.selectbox(
        "Appointment",
        options=df["id"].tolist(),
        format_func=lambda i: " | ".join(str(v) for v in df.loc[df["id"] == i, ["start", "employee", "client", "treatment"]].iloc[0]),
    )
    if st.button("Delete", type="primary"):
        db = SessionLocal()
        try:
            delete_appointment(db, int(to_delete))
            st.success("Appointment deleted")
            st.rerun()
        except AppException as e:
            st.error(e.message)
        finally:
            db.close()
else:
    st.info("No appointments on this day.")

# Footer
st.markdown("---")
st.caption(f"Salon Booking • {settings.BUSINESS_NAME}")
