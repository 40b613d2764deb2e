import threading
import tkinter as tk
from tkinter import filedialog, messagebox, scrolledtext, ttk

import matplotlib.pyplot as plt

from analyzer import SellAnalyzer, trades_to_dataframe
from config import get_debug_mode, set_debug_mode
from ocr_engines import ImageLoadError
from utils import fmt_amount, fmt_signed, log_debug

IMAGE_TYPES = [("Images", "*.png *.jpg *.jpeg *.bmp *.webp *.gif"), ("All files", "*.*")]


# -----------------------
# GUI
# -----------------------
def start_gui():
    analyzer = SellAnalyzer()

    root = tk.Tk()
    root.title("SELL Analyzer")
    root.geometry("760x620")

    tk.Label(root, text="Upload a screenshot -> SELL trades are found -> table", font=("Arial", 12, "bold")).pack(pady=(12, 6))

    status_var = tk.StringVar(value="Idle")
    progress_var = tk.DoubleVar(value=0.0)
    debug_var = tk.BooleanVar(value=get_debug_mode())
    busy = {"running": False}

    button_frame = tk.Frame(root)
    button_frame.pack(pady=6)

    progress_bar = ttk.Progressbar(root, variable=progress_var, maximum=100, length=420)
    progress_bar.pack(pady=4)
    tk.Label(root, textvariable=status_var).pack(pady=2)

    # Summary
    summary_frame = tk.LabelFrame(root, text="Summary", padx=8, pady=8)
    summary_frame.pack(fill="x", padx=12, pady=8)
    summary_vars = {
        "count": tk.StringVar(value="SELL trades: 0"),
        "profit": tk.StringVar(value="Total profit: -"),
        "result": tk.StringVar(value="Average result: -"),
        "amount": tk.StringVar(value="Total amount: -"),
    }
    for col, var in enumerate(summary_vars.values()):
        tk.Label(summary_frame, textvariable=var, anchor="w").grid(row=0, column=col, sticky="w", padx=8)

    # Trades table
    tree_frame = tk.Frame(root)
    tree_frame.pack(fill="both", expand=True, padx=12, pady=(0, 10))
    tree_frame.grid_columnconfigure(0, weight=1)
    tree_frame.grid_rowconfigure(0, weight=1)

    columns = ("pair", "date", "total", "result", "profit")
    tree = ttk.Treeview(tree_frame, columns=columns, show="headings")
    tree.heading("pair", text="Pair")
    tree.heading("date", text="Date")
    tree.heading("total", text="Total (USDT)")
    tree.heading("result", text="Result")
    tree.heading("profit", text="Profit (USDT)")
    tree.column("pair", width=140, anchor="w")
    tree.column("date", width=110, anchor="center")
    tree.column("total", width=130, anchor="e")
    tree.column("result", width=100, anchor="e")
    tree.column("profit", width=130, anchor="e")
    tree.tag_configure("gain", foreground="green")
    tree.tag_configure("loss", foreground="red")

    vsb = ttk.Scrollbar(tree_frame, orient="vertical", command=tree.yview)
    tree.configure(yscrollcommand=vsb.set)
    tree.grid(row=0, column=0, sticky="nsew")
    vsb.grid(row=0, column=1, sticky="ns")

    def show_result(result):
        tree.delete(*tree.get_children())
        for trade in result.trades:
            tree.insert(
                "",
                "end",
                values=(
                    trade.pair,
                    trade.date,
                    fmt_amount(trade.total),
                    fmt_signed(trade.result, suffix="%"),
                    fmt_signed(trade.profit),
                ),
                tags=("gain" if trade.profit >= 0 else "loss",),
            )

        s = result.summary
        summary_vars["count"].set(f"SELL trades: {s.count}")
        summary_vars["profit"].set(f"Total profit: {fmt_signed(s.total_profit)}")
        summary_vars["result"].set(f"Average result: {fmt_signed(s.average_result, suffix='%')}")
        summary_vars["amount"].set(f"Total amount: {fmt_amount(s.total_amount)}")

        if result.ocr_failed:
            status_var.set("No text recognized")
            messagebox.showwarning("OCR", "No text was recognized. Try another screenshot.")
        elif not result.trades:
            status_var.set("No SELL trades found")
        else:
            status_var.set(f"{s.count} SELL trades found")

    def finish(result=None, error=None):
        busy["running"] = False
        progress_var.set(0.0)
        if error is not None:
            status_var.set("Error")
            messagebox.showerror("Error", str(error))
            return
        show_result(result)

    def on_progress(fraction, status):
        # called from the worker thread
        root.after(0, lambda: (progress_var.set(fraction * 100), status_var.set(status)))

    def run_analysis(path):
        try:
            result = analyzer.analyze_image(path, progress=on_progress)
        except ImageLoadError as e:
            root.after(0, lambda err=e: finish(error=err))
            return
        except Exception as e:
            log_debug(f"[GUI] OCR failed for {path}: {e}")
            root.after(0, lambda msg=f"OCR failed: {e}": finish(error=msg))
            return
        root.after(0, lambda: finish(result=result))

    def open_screenshot():
        if busy["running"]:
            messagebox.showinfo("Info", "Analysis is already running.")
            return
        path = filedialog.askopenfilename(title="Choose screenshot", filetypes=IMAGE_TYPES)
        if not path:
            return
        busy["running"] = True
        status_var.set("Starting OCR ...")
        threading.Thread(target=run_analysis, args=(path,), daemon=True).start()

    def paste_text():
        dialog = tk.Toplevel(root)
        dialog.title("Paste OCR text")
        dialog.geometry("560x400")
        text_box = scrolledtext.ScrolledText(dialog, wrap="word")
        text_box.pack(fill="both", expand=True, padx=8, pady=8)

        def parse_pasted():
            result = analyzer.analyze_text(text_box.get("1.0", tk.END), source="<pasted>")
            dialog.destroy()
            show_result(result)

        tk.Button(dialog, text="Parse", command=parse_pasted).pack(pady=(0, 8))

    def show_ocr_text():
        result = analyzer.last_result
        if result is None:
            messagebox.showinfo("OCR text", "Nothing analyzed yet.")
            return
        window = tk.Toplevel(root)
        window.title(f"OCR text - {result.source}")
        window.geometry("560x420")
        box = scrolledtext.ScrolledText(window, wrap="word")
        box.insert("1.0", result.transcript)
        box.configure(state="disabled")
        box.pack(fill="both", expand=True, padx=8, pady=8)

    def show_profit_plot():
        result = analyzer.last_result
        if result is None or not result.trades:
            messagebox.showinfo("Chart", "No trades to show.")
            return
        df = trades_to_dataframe(result.trades)
        df["cumulative"] = df["profit"].cumsum()
        plt.figure(figsize=(10, 5))
        plt.bar(range(len(df)), df["profit"], color=["green" if p >= 0 else "red" for p in df["profit"]], label="Profit")
        plt.plot(range(len(df)), df["cumulative"], marker="o", color="black", label="Cumulative")
        plt.xticks(range(len(df)), [f"{p}\n{d}" for p, d in zip(df["pair"], df["date"])], fontsize=8)
        plt.title("SELL profit")
        plt.ylabel("Profit (USDT)")
        plt.legend()
        plt.tight_layout()
        plt.show()

    def toggle_debug():
        set_debug_mode(debug_var.get())
        analyzer.debug = debug_var.get()

    tk.Button(button_frame, text="Open screenshot", command=open_screenshot).pack(side="left", padx=4)
    tk.Button(button_frame, text="Paste text", command=paste_text).pack(side="left", padx=4)
    tk.Button(button_frame, text="Show OCR text", command=show_ocr_text).pack(side="left", padx=4)
    tk.Button(button_frame, text="Show profit chart", command=show_profit_plot).pack(side="left", padx=4)
    tk.Checkbutton(button_frame, text="Debug log", variable=debug_var, command=toggle_debug).pack(side="left", padx=8)

    root.mainloop()


if __name__ == "__main__":
    start_gui()
