"""Plain-text and HTML bodies for booking notifications."""

from html import escape

SIGNATURE = 'Hospital Appointment System'

_BUTTON_STYLE = (
    'background-color: #3498db; color: white; padding: 10px 20px; '
    'text-decoration: none; border-radius: 5px; display: inline-block;'
)


def _meeting_link_html(meet_link: str) -> str:
    link = escape(meet_link)
    return (
        f'<p><strong>Meeting Link:</strong> <a href="{link}" style="color: #3498db; text-decoration: none;">{link}</a></p>'
        f'<p style="margin-top: 15px; text-align: center;"><a href="{link}" style="{_BUTTON_STYLE}">Join Meeting</a></p>'
    )


def _wrap(title: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #333;">'
        f'<h2 style="color: #2c3e50; text-align: center;">{title}</h2>'
        f'{body}'
        '</div>'
    )


def appointment_confirmation(
    appointment_date: str,
    start_time: str,
    end_time: str,
    is_online: bool,
    meet_link: str | None,
    address: str | None,
    notes: str | None,
) -> tuple[str, str]:
    """Return ``(text, html)`` for the patient and doctor confirmation."""
    lines = [
        'Dear Participant,',
        '',
        'Your appointment has been successfully scheduled.',
        '',
        f'Date: {appointment_date}',
        f'Time: {start_time} - {end_time}',
    ]
    if is_online:
        lines.append(f'Meeting Link: {meet_link}')
        lines.append('')
        lines.append('Please join the meeting using the link above at the scheduled time.')
    else:
        lines.append(f'Location: {address or ""}')
    if notes:
        lines.extend(['', f'Additional Notes: {notes}'])
    lines.extend(['', 'We look forward to your participation.', '', 'Best regards,', SIGNATURE])
    text = '\n'.join(lines)

    details = [
        f'<p><strong>Date:</strong> {escape(appointment_date)}</p>',
        f'<p><strong>Time:</strong> {escape(start_time)} - {escape(end_time)}</p>',
    ]
    if is_online:
        details.append(_meeting_link_html(meet_link or ''))
    else:
        details.append(f'<p><strong>Location:</strong> {escape(address or "")}</p>')
    if notes:
        details.append(f'<p><strong>Additional Notes:</strong> {escape(notes)}</p>')

    closing = (
        '<p>Please join the meeting using the link above at the scheduled time.</p>'
        if is_online
        else '<p>Please arrive at the location at the scheduled time.</p>'
    )
    html = _wrap(
        'Appointment Confirmation',
        '<p>Dear Participant,</p>'
        '<p>Your appointment has been successfully scheduled. Please find the details below:</p>'
        '<div style="background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin: 20px 0;">'
        f'{"".join(details)}</div>'
        f'{closing}'
        f'<p style="margin-top: 20px;">We look forward to your participation.<br>Best regards,<br>{SIGNATURE}</p>',
    )
    return text, html


def organizer_approval(
    appointment_date: str,
    start_time: str,
    end_time: str,
    meet_link: str | None,
    notes: str | None,
) -> tuple[str, str]:
    """Ask the calendar owner to open the Meet session for both attendees."""
    lines = [
        'Dear Organizer,',
        '',
        'You are requested to approve the upcoming appointment by joining the Google Meet '
        'session and enabling access for both the Doctor and the Patient.',
        '',
        'Appointment Details:',
        f'- Date: {appointment_date}',
        f'- Time: {start_time} - {end_time}',
        f'- Meeting Link: {meet_link}',
    ]
    if notes:
        lines.append(f'- Notes: {notes}')
    lines.extend([
        '',
        'Please ensure the meeting is opened so the participants can join without delay.',
        '',
        'Thank you,',
        SIGNATURE,
    ])
    text = '\n'.join(lines)

    details = [
        f'<p><strong>Date:</strong> {escape(appointment_date)}</p>',
        f'<p><strong>Time:</strong> {escape(start_time)} - {escape(end_time)}</p>',
        _meeting_link_html(meet_link or ''),
    ]
    if notes:
        details.append(f'<p><strong>Notes:</strong> {escape(notes)}</p>')

    html = _wrap(
        'Appointment Approval Required',
        '<p>Dear Organizer,</p>'
        '<p>You are requested to approve the upcoming appointment by joining the Google Meet session '
        'and making it accessible for both the Doctor and the Patient.</p>'
        '<div style="background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin: 20px 0;">'
        f'{"".join(details)}</div>'
        '<p><em>Please join the meeting using the link above and ensure it is opened for the Doctor and the Patient.</em></p>'
        f'<p style="margin-top: 20px;">Thank you,<br>{SIGNATURE}</p>',
    )
    return text, html
